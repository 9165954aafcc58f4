"""
anthropic-client - Streaming Module

bytes -> SseDecoder -> SseFrame -> StreamEventDispatcher -> StreamEvent
      -> MessageAccumulator -> Message
"""

from .sse import SseDecoder, SseFrame, aiter_frames
from .events import (
    CitationsDelta,
    ContentBlockDelta,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    InputJsonDelta,
    MessageDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    SignatureDelta,
    StreamEvent,
    StreamEventDispatcher,
    TextDelta,
    ThinkingDelta,
    UnknownDelta,
    UnknownEvent,
    aiter_events,
)
from .accumulator import MessageAccumulator
from .stream import MessageStream

__all__ = [
    # SSE
    "SseDecoder",
    "SseFrame",
    "aiter_frames",
    # Events
    "CitationsDelta",
    "ContentBlockDelta",
    "ContentBlockDeltaEvent",
    "ContentBlockStartEvent",
    "ContentBlockStopEvent",
    "ErrorEvent",
    "InputJsonDelta",
    "MessageDelta",
    "MessageDeltaEvent",
    "MessageStartEvent",
    "MessageStopEvent",
    "PingEvent",
    "SignatureDelta",
    "StreamEvent",
    "StreamEventDispatcher",
    "TextDelta",
    "ThinkingDelta",
    "UnknownDelta",
    "UnknownEvent",
    "aiter_events",
    # Accumulation
    "MessageAccumulator",
    "MessageStream",
]
