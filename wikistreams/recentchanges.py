"""
Recent changes feed: everything going on across Wikimedia wikis.
"""
from typing import Awaitable, Callable, Union

from .models import RecentChangesEvent
from .stream import ErrorCallback, Stream
from .transport import Frame


class RecentChangesStream(Stream):
    """Receives events about edits, page creations and log actions on every wiki."""

    stream_path = "recentchange"
    schema = "mediawiki/recentchange/2"
    event_model = RecentChangesEvent

    async def run(
        self,
        receive: Callable[[RecentChangesEvent], Union[None, Awaitable[None]]],
        handle_error: ErrorCallback,
    ) -> None:
        """
        Connect to the server and deliver events until the stream ends.

        Args:
            receive: Called with every decoded event that passes validation
            handle_error: Called with EventDecodeError or UnexpectedSchemaError
                for frames that cannot be delivered

        Raises:
            StreamConnectionError: If the connection fails for good
        """
        async def on_frame(frame: Frame) -> None:
            await self._dispatch(frame, self.event_model, receive, handle_error)

        await self._run_stream(self.stream_path, self.schema, on_frame)
