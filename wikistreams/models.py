"""
Event DTOs for Wikimedia EventStreams.

Every event on the wire is a JSON object carrying a ``meta`` header that is
common to all streams, plus stream-specific fields. Field names follow the
upstream protocol exactly; attributes that would shadow Python names or read
poorly are renamed and keep the wire name as their alias.

Decoding mirrors the upstream JSON semantics: absent keys and explicit
``null`` both leave a field at its zero value.
"""
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from .errors import EventDecodeError


class BaseDTO(BaseModel):
    """
    Base configuration for all stream DTOs.

    - Immutable once decoded.
    - Unknown wire fields are ignored.
    - Populated either by wire name (alias) or by attribute name.
    """
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Treat JSON null as an absent key so the field default applies."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class NewOldNumbers(BaseDTO):
    """A before/after pair, used for page length and revision ids."""
    new: StrictInt = 0
    old: StrictInt = 0


class Metadata(BaseDTO):
    """Metadata present in every event, whatever the stream."""
    domain: StrictStr = Field(default="", description="Domain the event originated from")
    date_time: StrictStr = Field(default="", alias="dt", description="ISO 8601 event timestamp")
    id: StrictStr = Field(default="", description="Unique event id")
    request_id: StrictStr = Field(default="", description="Id of the request that caused the event")
    schema_uri: StrictStr = Field(default="", description="Schema identifier of the payload")
    topic: StrictStr = Field(default="", description="Upstream topic the event was read from")
    uri: StrictStr = Field(default="", description="Canonical URI of the changed resource")
    partition: StrictInt = Field(default=0, ge=0, description="Upstream partition number")
    offset: StrictInt = Field(default=0, ge=0, description="Offset within the partition")

    @property
    def occurred_at(self) -> Optional[datetime]:
        """``dt`` parsed as a datetime, or None when missing or malformed."""
        if not self.date_time:
            return None
        try:
            return datetime.fromisoformat(self.date_time.replace("Z", "+00:00"))
        except ValueError:
            return None


class Event(BaseDTO):
    """Base for every stream event: just the metadata header."""
    meta: Metadata = Field(default_factory=Metadata)

    @classmethod
    def from_payload(cls, payload: Union[bytes, str]):
        """
        Decode a frame payload into this event type.

        Validation is strict: a value of the wrong JSON type (``"0"`` for an
        integer, ``"true"`` for a boolean, ``1.0`` for an integer) is rejected
        rather than converted.

        Args:
            payload: Raw JSON text of one frame

        Returns:
            A new instance of the calling class

        Raises:
            EventDecodeError: If the payload is not JSON or does not fit the model
        """
        text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            first = e.errors()[0]
            if first["type"] == "json_invalid":
                message = f"Failed to parse event payload: {first['msg']}"
            elif first["type"] in ("model_type", "model_attributes_type") and not first["loc"]:
                message = "Expected a JSON object"
            else:
                message = f"Payload does not match {cls.__name__}: {e.error_count()} validation error(s)"
            raise EventDecodeError(message, payload=text) from e


class RecentChangesEvent(Event):
    """
    Information about a recent change on a wiki.

    Covers edits, page creations, log actions and categorization changes.
    ``length`` and ``revision`` are only filled in for edits and creations.
    """
    bot: StrictBool = False
    comment: StrictStr = ""
    length: NewOldNumbers = Field(default_factory=NewOldNumbers)
    minor: StrictBool = False
    namespace: StrictInt = 0
    title: StrictStr = ""
    patrolled: StrictBool = False
    revision: NewOldNumbers = Field(default_factory=NewOldNumbers)
    server_name: StrictStr = ""
    timestamp: StrictInt = 0
    type: StrictStr = ""
    log_type: StrictStr = ""
    user: StrictStr = ""
    wiki: StrictStr = ""
