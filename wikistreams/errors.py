"""
Exceptions raised or reported by wikistreams.

Per-frame problems (decode failures, schema mismatches) are handed to the
stream's error callback and never stop the stream. Connection failures are
terminal and raised from ``run()``.
"""
from typing import Optional


class StreamError(Exception):
    """Base exception for wikistreams errors."""
    pass


class EventDecodeError(StreamError):
    """Raised when a frame payload does not decode into the event model."""

    def __init__(self, message: str, payload: str = ""):
        super().__init__(message)
        self.payload = payload


class UnexpectedSchemaError(StreamError):
    """Raised when an event carries a schema_uri other than the expected one."""

    def __init__(self, schema: str, expected: str):
        super().__init__(f"Received event with schema_uri='{schema}', '{expected}' expected")
        self.schema = schema
        self.expected = expected


class InvalidOriginFilterError(StreamError, ValueError):
    """Raised when an origin filter pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid origin filter {pattern!r}: {reason}")
        self.pattern = pattern


class StreamConnectionError(StreamError, ConnectionError):
    """Raised when the event stream connection fails for good."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
