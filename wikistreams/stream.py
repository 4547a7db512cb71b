"""
Stream base shared by every concrete EventStreams feed.

A stream owns its configuration (endpoint, origin filter, resume cursor),
opens one SSE connection per ``run()``, and feeds every non-empty frame
through decode -> validate -> dispatch, strictly in arrival order.

Usage:
    from wikistreams import RecentChangesStream

    stream = RecentChangesStream()

    # Optional configuration, before run()
    stream.filter_by_origin("*.wikipedia.org")
    stream.resume_since("2023-01-01T00:00:00Z")
    stream.set_endpoint("https://example.com/stream/")

    async def receive(event):
        print(event.title)

    def handle_error(error):
        print(f"skipped: {error}")

    await stream.run(receive, handle_error)

Configuration is write-once-before-run: calls made while ``run()`` is in
progress are ignored. Mutating a stream from another thread while it runs
is a caller error.
"""
import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Pattern, Type, TypeVar, Union
from urllib.parse import quote_plus

import httpx

from .config import StreamSettings, settings as default_settings
from .errors import EventDecodeError, UnexpectedSchemaError
from .filters import compile_origin_filter, validate_metadata
from .models import Event, Metadata
from .transport import Frame, SSETransport

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Event)

# Callbacks may be plain functions or coroutine functions
EventCallback = Callable[[Any], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[Exception], Union[None, Awaitable[None]]]
FrameHandler = Callable[[Frame], Awaitable[None]]


async def _invoke(callback: Callable[[Any], Any], argument: Any) -> None:
    """Call a callback and wait for it if it returned an awaitable."""
    result = callback(argument)
    if inspect.isawaitable(result):
        await result


class Stream:
    """
    Base for type-specific streams.

    Subclasses bind a path segment, a schema identifier and an event model,
    and expose ``run(receive, handle_error)``.

    Attributes:
        settings: Connection settings used by this stream
    """

    def __init__(
        self,
        settings: Optional[StreamSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the stream.

        Args:
            settings: Connection settings (defaults to the global settings)
            client: An existing httpx client to connect with; left open after runs
        """
        self.settings = settings or default_settings
        self._endpoint = self.settings.stream_url
        self._origin_filter: Optional[Pattern[str]] = None
        self._since: Optional[str] = None
        self._schema: Optional[str] = None
        self._http_client = client
        self._running = False

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def endpoint(self) -> str:
        """Base URL the stream path is appended to."""
        return self._endpoint

    @property
    def is_running(self) -> bool:
        """Check if a run is in progress."""
        return self._running

    def set_endpoint(self, url: str) -> "Stream":
        """
        Use another base URL instead of the public Wikimedia endpoint.

        The URL is not validated; a malformed one fails when the stream runs.
        Does nothing while the stream is running.
        """
        if self._ignored_while_running("set_endpoint"):
            return self
        self._endpoint = url
        return self

    def filter_by_origin(self, pattern: str) -> None:
        """
        Only deliver events whose domain matches ``pattern``.

        Accepts literal ("en.wikipedia.org") and masked ("*.wikibooks.org")
        domains. Does nothing while the stream is running.

        Raises:
            InvalidOriginFilterError: If the pattern does not compile
        """
        if self._ignored_while_running("filter_by_origin"):
            return
        self._origin_filter = compile_origin_filter(pattern)

    def resume_since(self, timestamp: Union[str, datetime]) -> None:
        """
        Start reading events from some time in the past.

        Pass the ``meta.dt`` of the last event handled before a disconnect to
        avoid losing events. Does nothing while the stream is running.

        Args:
            timestamp: ISO 8601 timestamp, or a datetime (naive values are taken as UTC)
        """
        if self._ignored_while_running("resume_since"):
            return
        if isinstance(timestamp, datetime):
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)
            timestamp = timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        self._since = timestamp

    def build_url(self, stream_path: str) -> str:
        """Full request URL for ``stream_path``, resume cursor included."""
        url = self._endpoint + stream_path
        if self._since:
            url += "?since=" + quote_plus(self._since)
        return url

    def _ignored_while_running(self, operation: str) -> bool:
        if self._running:
            logger.warning(f"{operation}() ignored: stream is already running")
            return True
        return False

    # =========================================================================
    # Validation and dispatch
    # =========================================================================

    def _validate_metadata(self, meta: Metadata) -> bool:
        return validate_metadata(meta, self._schema or "", self._origin_filter)

    async def _dispatch(
        self,
        frame: Frame,
        event_model: Type[E],
        receive: EventCallback,
        handle_error: ErrorCallback,
    ) -> None:
        """
        Decode one frame and hand it to exactly one callback, or drop it.

        Decode failures and schema mismatches go to ``handle_error``; events
        rejected by the origin filter are dropped without a callback.
        """
        try:
            event = event_model.from_payload(frame.data)
        except EventDecodeError as e:
            await _invoke(handle_error, e)
            return

        try:
            valid = self._validate_metadata(event.meta)
        except UnexpectedSchemaError as e:
            await _invoke(handle_error, e)
            return

        if not valid:
            logger.debug(f"Dropped event from {event.meta.domain}: origin filter")
            return

        await _invoke(receive, event)

    # =========================================================================
    # Stream Processing
    # =========================================================================

    async def _run_stream(
        self,
        stream_path: str,
        expected_schema: str,
        on_frame: FrameHandler,
    ) -> None:
        """
        Connect to the server and feed frames to ``on_frame`` until the stream ends.

        Frames with an empty payload are dropped before ``on_frame``. The
        connection is closed on every exit path, cancellation included.

        Raises:
            StreamConnectionError: If the connection fails for good
        """
        if self._running:
            raise RuntimeError("Stream is already running")

        self._schema = expected_schema
        url = self.build_url(stream_path)
        self._running = True
        try:
            async with SSETransport(url, settings=self.settings, client=self._http_client) as transport:
                frames = transport.frames()
                try:
                    async for frame in frames:
                        # Filter for empty events
                        if not frame.data:
                            logger.debug("Skipping frame without data")
                            continue
                        await on_frame(frame)
                finally:
                    # Closes the response held by the suspended generator
                    await frames.aclose()
        finally:
            self._running = False

    async def run(self, receive: EventCallback, handle_error: ErrorCallback) -> None:
        """
        Connect and deliver events until the stream ends.

        Subclass hook: every concrete stream binds its path, schema and event
        model here by calling ``_run_stream`` with a frame handler.
        """
        raise NotImplementedError(f"{type(self).__name__} does not bind a stream")

    def run_forever(self, receive: EventCallback, handle_error: ErrorCallback) -> None:
        """
        Run the stream from synchronous code until it ends or is interrupted.

        Usage:
            if __name__ == "__main__":
                stream.run_forever(print, print)
        """
        try:
            asyncio.run(self.run(receive, handle_error))
        except KeyboardInterrupt:
            pass
