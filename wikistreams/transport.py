"""
Server-Sent Events transport.

Opens a long-lived HTTP GET against an EventStreams URL and turns the
``text/event-stream`` body into ``Frame`` objects. The transport knows
nothing about event payloads; it only splits the byte stream.

Usage:
    async with SSETransport("https://stream.wikimedia.org/v2/stream/recentchange") as transport:
        async for frame in transport.frames():
            print(frame.event, frame.data)
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

import httpx

from .config import StreamSettings, settings as default_settings
from .errors import StreamConnectionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """One event as delivered by the server."""
    event: str = "message"
    data: bytes = b""
    id: Optional[str] = None
    retry: Optional[int] = None  # milliseconds


async def iter_frames(lines: AsyncIterator[str]) -> AsyncIterator[Frame]:
    """
    Parse Server-Sent Events lines into frames.

    A blank line ends a frame. Comment lines (``:``) are keep-alives and are
    skipped. The last event id carries over to following frames, as it does
    in browser EventSource clients. A trailing frame that is not
    terminated by a blank line is discarded.

    Args:
        lines: Lines of the response body without line terminators

    Yields:
        Parsed frames, including frames whose data is empty
    """
    event_type: Optional[str] = None
    data_lines: List[str] = []
    last_event_id: Optional[str] = None
    retry: Optional[int] = None
    seen_field = False

    async for line in lines:
        if not line:
            if seen_field:
                yield Frame(
                    event=event_type or "message",
                    data="\n".join(data_lines).encode("utf-8"),
                    id=last_event_id,
                    retry=retry,
                )
            event_type = None
            data_lines = []
            retry = None
            seen_field = False
            continue

        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            event_type = value
        elif field == "data":
            data_lines.append(value)
        elif field == "id":
            if "\0" not in value:
                last_event_id = value
        elif field == "retry":
            if value.isdigit():
                retry = int(value)
        else:
            # Unknown field names are ignored
            continue
        seen_field = True


class SSETransport:
    """
    Persistent SSE connection to a single URL.

    This transport:
    - Streams the response body with httpx, without a read timeout
    - Wraps every connection-level failure in StreamConnectionError
    - Optionally reconnects with exponential backoff, resuming from the
      last event id it has seen

    Attributes:
        url: URL the transport connects to
        last_event_id: Id of the most recent frame, sent as Last-Event-ID on reconnect
    """

    def __init__(
        self,
        url: str,
        settings: Optional[StreamSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the transport.

        Args:
            url: Full stream URL, query string included
            settings: Connection settings (defaults to the global settings)
            client: An existing httpx client to use; it is not closed by the transport
            headers: Extra request headers
        """
        self.url = url
        self.settings = settings or default_settings
        self.last_event_id: Optional[str] = None
        self._extra_headers = headers or {}
        self._http_client = client
        self._owns_client = client is None
        self._retry_delay: Optional[float] = None

    # =========================================================================
    # Frame iteration
    # =========================================================================

    async def frames(self) -> AsyncIterator[Frame]:
        """
        Yield frames until the server closes the stream.

        Raises:
            StreamConnectionError: If the connection fails and no reconnect
                attempts are left
        """
        attempt = 0
        max_attempts = self.settings.max_reconnect_attempts

        while True:
            stream = self._stream_frames()
            try:
                async for frame in stream:
                    attempt = 0
                    yield frame
                logger.info(f"Event stream closed by server: {self.url}")
                return
            except StreamConnectionError as e:
                if max_attempts >= 0 and attempt >= max_attempts:
                    raise

                delay = min(
                    (self._retry_delay or self.settings.reconnect_base_delay) * (2 ** attempt),
                    self.settings.reconnect_max_delay,
                )
                logger.warning(f"Stream connection issue: {e}; reconnecting in {delay:.1f}s (attempt {attempt + 1})")
                await asyncio.sleep(delay)
                attempt += 1
            finally:
                await stream.aclose()

    async def _stream_frames(self) -> AsyncIterator[Frame]:
        """Run one connection and yield its frames."""
        client = self._ensure_http_client()
        headers = self._request_headers()

        logger.info(f"Connecting to event stream: {self.url}")
        try:
            async with client.stream("GET", self.url, headers=headers) as response:
                if response.status_code != 200:
                    raise StreamConnectionError(
                        f"SSE connection failed: {response.status_code}",
                        status_code=response.status_code,
                    )

                logger.info(f"Connected to event stream: {self.url}")
                try:
                    async for frame in iter_frames(response.aiter_lines()):
                        if frame.id is not None:
                            self.last_event_id = frame.id
                        if frame.retry is not None:
                            self._retry_delay = frame.retry / 1000.0
                        yield frame
                finally:
                    logger.info(f"Disconnected from event stream: {self.url}")
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise StreamConnectionError(f"SSE connection failed: {e}") from e

    def _request_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
            "User-Agent": self.settings.user_agent,
        }
        if self.last_event_id:
            headers["Last-Event-ID"] = self.last_event_id
        headers.update(self._extra_headers)
        return headers

    # =========================================================================
    # HTTP Client Management
    # =========================================================================

    def _ensure_http_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._http_client is None:
            # Reads never time out: the stream is expected to stay open indefinitely
            timeout = httpx.Timeout(
                connect=self.settings.connect_timeout,
                read=None,
                write=30.0,
                pool=None,
            )
            self._http_client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client if the transport created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "SSETransport":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()
