"""
Origin filtering and metadata validation.

Both functions here are pure so the accept/reject rules can be tested
without a connection.
"""
import re
from typing import Optional, Pattern

from .errors import InvalidOriginFilterError, UnexpectedSchemaError
from .models import Metadata


def compile_origin_filter(pattern: str) -> Pattern[str]:
    """
    Compile a domain pattern such as ``"*.wikipedia.org"``.

    ``.`` matches a literal dot and ``*`` matches any run of characters,
    including none. The whole domain has to match.

    Raises:
        InvalidOriginFilterError: If the translated pattern does not compile
    """
    translated = pattern.replace(".", r"\.").replace("*", ".*")
    try:
        return re.compile(translated)
    except re.error as e:
        raise InvalidOriginFilterError(pattern, str(e)) from e


def validate_metadata(
    meta: Metadata,
    expected_schema: str,
    matcher: Optional[Pattern[str]] = None,
) -> bool:
    """
    Decide whether an event should reach the caller.

    Returns:
        True if the event should be delivered, False if the origin filter
        rejects it

    Raises:
        UnexpectedSchemaError: If ``meta.schema_uri`` is not ``expected_schema``
    """
    if meta.schema_uri != expected_schema:
        raise UnexpectedSchemaError(meta.schema_uri, expected_schema)
    if matcher is not None and matcher.fullmatch(meta.domain) is None:
        return False
    return True
