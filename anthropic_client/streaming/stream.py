"""
anthropic-client - Message Stream

Lazy, non-restartable async sequence of typed events over an open SSE
response.

Usage:
    async with await client.messages.stream(model="claude-sonnet-4-6", ...) as stream:
        async for text in stream.text_stream():
            print(text, end="", flush=True)

    # or fold everything into the final message
    message = await stream.accumulate()
"""

from typing import Any, AsyncIterator, Optional

import httpx

from ..core.errors import StreamProtocolViolation
from ..core.http_client import map_transport_error
from ..observability.logging import get_logger
from ..types.message import Message
from .accumulator import EventObserver, MessageAccumulator
from .events import ContentBlockDeltaEvent, StreamEventDispatcher, TextDelta, aiter_events
from .sse import aiter_frames


logger = get_logger(__name__)


class MessageStream:
    """
    Typed events of one streaming call.

    Events are decoded as bytes arrive; nothing is buffered beyond the frame
    being assembled. Leaving the ``async with`` block (or calling ``close``)
    drops the connection. No partial ``Message`` is produced for an abandoned
    stream; pass an observer to ``accumulate`` to keep intermediate state.
    """

    def __init__(self, response: httpx.Response, dispatcher: Optional[StreamEventDispatcher] = None):
        self.response = response
        self._dispatcher = dispatcher or StreamEventDispatcher()
        self._iterator: Optional[AsyncIterator[Any]] = None
        self._closed = False

    @property
    def request_id(self) -> Optional[str]:
        return self.response.headers.get("request-id")

    async def __aenter__(self) -> "MessageStream":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def __aiter__(self) -> "MessageStream":
        return self

    async def __anext__(self) -> Any:
        # closed streams never restart
        if self._closed:
            raise StopAsyncIteration
        if self._iterator is None:
            self._iterator = self._iter_events()
        return await self._iterator.__anext__()

    async def _iter_events(self) -> AsyncIterator[Any]:
        try:
            async for event in aiter_events(aiter_frames(self.response.aiter_bytes()), self._dispatcher):
                yield event
        except httpx.HTTPError as e:
            raise map_transport_error(e) from e
        finally:
            await self._close_response()

    async def close(self) -> None:
        """Stop decoding and release the connection."""
        if self._iterator is not None:
            iterator, self._iterator = self._iterator, None
            await iterator.aclose()  # type: ignore[attr-defined]
        await self._close_response()

    async def _close_response(self) -> None:
        if not self._closed:
            self._closed = True
            await self.response.aclose()

    async def accumulate(self, observer: Optional[EventObserver] = None) -> Message:
        """
        Consume the rest of the stream and return the final message.

        Args:
            observer: Called with each event before it is folded in. An
                exception from the observer aborts the stream and propagates.

        Raises:
            StreamProtocolViolation: Events out of order, or the stream ended early
            ApiError: The server sent an ``error`` event
        """
        accumulator = MessageAccumulator(observer)
        try:
            async for event in self:
                accumulator.apply(event)
        except Exception:
            await self.close()
            raise

        if not accumulator.done:
            logger.warning("Stream ended before message_stop", request_id=self.request_id or "")
            raise StreamProtocolViolation("Stream ended before message_stop")
        return accumulator.finish()

    async def text_stream(self) -> AsyncIterator[str]:
        """Yield only the text deltas."""
        async for event in self:
            if isinstance(event, ContentBlockDeltaEvent) and isinstance(event.delta, TextDelta):
                yield event.delta.text
