"""
anthropic-client - Stream Events

Typed streaming events and the dispatcher that decodes SSE frames into them.

``StreamEvent`` and ``ContentBlockDelta`` are tagged unions on the JSON
``type`` field. Unknown event or delta kinds decode to ``UnknownEvent`` /
``UnknownDelta`` and are skipped by the accumulator.
"""

import json
from typing import Any, AsyncIterable, AsyncIterator, Dict, Literal, Optional

from pydantic import BaseModel

from ..core.errors import ApiError, SerializationFailure
from ..observability.logging import get_logger
from ..observability.metrics import get_metrics
from ..types.citation import TextCitation
from ..types.codec import UnknownVariant, decode, tagged_union
from ..types.content import ContentBlock
from ..types.message import ErrorObject, Message, MessageDeltaUsage
from ..types.model import StopReason
from .sse import DEFAULT_EVENT, SseFrame


logger = get_logger(__name__)


# ============================================================
# Content block deltas
# ============================================================

class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    text: str


class InputJsonDelta(BaseModel):
    """A fragment of a tool call's JSON input; fragments are only valid JSON once joined."""

    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


class ThinkingDelta(BaseModel):
    type: Literal["thinking_delta"] = "thinking_delta"
    thinking: str


class SignatureDelta(BaseModel):
    type: Literal["signature_delta"] = "signature_delta"
    signature: str


class CitationsDelta(BaseModel):
    type: Literal["citations_delta"] = "citations_delta"
    citation: TextCitation


class UnknownDelta(UnknownVariant):
    pass


ContentBlockDelta = tagged_union(
    TextDelta,
    InputJsonDelta,
    ThinkingDelta,
    SignatureDelta,
    CitationsDelta,
    unknown=UnknownDelta,
)


# ============================================================
# Events
# ============================================================

class MessageStartEvent(BaseModel):
    type: Literal["message_start"] = "message_start"
    message: Message


class ContentBlockStartEvent(BaseModel):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: ContentBlock


class ContentBlockDeltaEvent(BaseModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: ContentBlockDelta


class ContentBlockStopEvent(BaseModel):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDelta(BaseModel):
    stop_reason: Optional[StopReason] = None
    stop_sequence: Optional[str] = None


class MessageDeltaEvent(BaseModel):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDelta
    usage: Optional[MessageDeltaUsage] = None


class MessageStopEvent(BaseModel):
    type: Literal["message_stop"] = "message_stop"


class PingEvent(BaseModel):
    type: Literal["ping"] = "ping"


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: ErrorObject


class UnknownEvent(UnknownVariant):
    pass


StreamEvent = tagged_union(
    MessageStartEvent,
    ContentBlockStartEvent,
    ContentBlockDeltaEvent,
    ContentBlockStopEvent,
    MessageDeltaEvent,
    MessageStopEvent,
    PingEvent,
    ErrorEvent,
    unknown=UnknownEvent,
)


# ============================================================
# Dispatcher
# ============================================================

class StreamEventDispatcher:
    """
    Decodes SSE frames into ``StreamEvent`` values.

    The JSON ``type`` field selects the variant. The SSE event name is only
    used when the payload carries no ``type`` (or no payload at all); a
    disagreement between the two is logged and the JSON wins.
    """

    def dispatch(self, frame: SseFrame) -> Optional[Any]:
        """
        Decode one frame.

        Returns:
            The typed event, or None for an empty unnamed frame

        Raises:
            ApiError: The frame is an ``error`` event
            SerializationFailure: The payload is not a JSON object of a known shape
        """
        payload = self._payload(frame)
        if payload is None:
            return None

        if payload.get("type") == "error":
            error = ApiError.from_response(status=None, body=payload, raw_text=frame.data)
            logger.warning(
                "Error event in stream",
                error_type=error.discriminant,
                error=error.message,
            )
            raise error

        event = decode(StreamEvent, payload)
        get_metrics().record_stream_event(event.type)
        return event

    def _payload(self, frame: SseFrame) -> Optional[Dict[str, Any]]:
        if not frame.data.strip():
            if frame.event == DEFAULT_EVENT:
                return None
            return {"type": frame.event}

        try:
            payload = json.loads(frame.data)
        except ValueError as e:
            raise SerializationFailure(
                f"Stream event {frame.event!r} is not valid JSON",
                payload=frame.data,
                cause=e,
            ) from e

        if not isinstance(payload, dict):
            raise SerializationFailure(
                f"Stream event {frame.event!r} is not a JSON object",
                payload=payload,
            )

        json_type = payload.get("type")
        if json_type is None:
            payload["type"] = frame.event
        elif frame.event != DEFAULT_EVENT and json_type != frame.event:
            logger.debug(
                "SSE event name disagrees with payload type",
                sse_event=frame.event,
                payload_type=json_type,
            )
        return payload


async def aiter_events(
    frames: AsyncIterable[SseFrame],
    dispatcher: Optional[StreamEventDispatcher] = None,
) -> AsyncIterator[Any]:
    """Lazily decode typed events from a frame stream, skipping ignorable frames."""
    dispatcher = dispatcher or StreamEventDispatcher()
    async for frame in frames:
        event = dispatcher.dispatch(frame)
        if event is not None:
            yield event
