"""
wikistreams - receive change notifications from Wikimedia wikis.

Connects to Wikimedia EventStreams (https://wikitech.wikimedia.org/wiki/Event_Platform/EventStreams)
over Server-Sent Events, decodes and validates every event, and hands it to
your callbacks.
"""

__version__ = "0.1.0"

from .errors import (
    EventDecodeError,
    InvalidOriginFilterError,
    StreamConnectionError,
    StreamError,
    UnexpectedSchemaError,
)
from .models import Event, Metadata, NewOldNumbers, RecentChangesEvent
from .config import StreamSettings
from .stream import Stream
from .recentchanges import RecentChangesStream

__all__ = [
    "__version__",
    "Event",
    "EventDecodeError",
    "InvalidOriginFilterError",
    "Metadata",
    "NewOldNumbers",
    "RecentChangesEvent",
    "RecentChangesStream",
    "Stream",
    "StreamConnectionError",
    "StreamError",
    "StreamSettings",
    "UnexpectedSchemaError",
]
