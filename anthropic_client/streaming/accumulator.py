"""
anthropic-client - Message Accumulator

Folds an ordered stream of events into the final ``Message``.

Accepted order::

    message_start
    (content_block_start(i) content_block_delta(i)* content_block_stop(i))*   i strictly increasing
    message_delta*
    message_stop

``ping`` and unrecognized events are no-ops anywhere. Anything else out of
order raises ``StreamProtocolViolation``. Deltas apply according to the open
block's kind: text and thinking append to strings, tool input fragments
append to a buffer parsed as JSON when the block stops, citations append to
a list.
"""

import json
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from ..core.errors import SerializationFailure, StreamProtocolViolation
from ..types.codec import UnknownVariant
from ..types.content import ServerToolUseBlock, TextBlock, ThinkingBlock, ToolUseBlock
from ..types.message import Message, MessageDeltaUsage, Usage
from .events import (
    CitationsDelta,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    SignatureDelta,
    TextDelta,
    ThinkingDelta,
)


EventObserver = Callable[[Any], None]


class _BlockBuilder:
    """Mutable state of one open content block."""

    def __init__(self, index: int, block: BaseModel):
        self.index = index
        self.block = block
        self.text: List[str] = []
        self.partial_json: List[str] = []
        self.thinking: List[str] = []
        self.signature: List[str] = []
        self.citations: List[Any] = []

    def apply(self, delta: BaseModel) -> None:
        block = self.block
        if isinstance(delta, UnknownVariant) or isinstance(block, UnknownVariant):
            return

        if isinstance(delta, TextDelta) and isinstance(block, TextBlock):
            self.text.append(delta.text)
        elif isinstance(delta, CitationsDelta) and isinstance(block, TextBlock):
            self.citations.append(delta.citation)
        elif isinstance(delta, InputJsonDelta) and isinstance(block, (ToolUseBlock, ServerToolUseBlock)):
            self.partial_json.append(delta.partial_json)
        elif isinstance(delta, ThinkingDelta) and isinstance(block, ThinkingBlock):
            self.thinking.append(delta.thinking)
        elif isinstance(delta, SignatureDelta) and isinstance(block, ThinkingBlock):
            self.signature.append(delta.signature)
        else:
            raise StreamProtocolViolation(
                f"{delta.type} cannot apply to {block.type} block at index {self.index}",
                event_type="content_block_delta",
            )

    def build(self) -> BaseModel:
        block = self.block
        if isinstance(block, TextBlock):
            update: Dict[str, Any] = {"text": block.text + "".join(self.text)}
            if self.citations:
                update["citations"] = list(block.citations or []) + self.citations
            return block.model_copy(update=update)

        if isinstance(block, (ToolUseBlock, ServerToolUseBlock)):
            raw = "".join(self.partial_json)
            if not raw.strip():
                return block
            try:
                parsed = json.loads(raw)
            except ValueError as e:
                raise SerializationFailure(
                    f"Tool input for block {self.index} is not valid JSON",
                    payload=raw,
                    cause=e,
                ) from e
            return block.model_copy(update={"input": parsed})

        if isinstance(block, ThinkingBlock):
            return block.model_copy(update={
                "thinking": block.thinking + "".join(self.thinking),
                "signature": block.signature + "".join(self.signature),
            })

        return block


def _merge_usage(usage: Usage, delta: MessageDeltaUsage) -> Usage:
    update: Dict[str, Any] = {"output_tokens": delta.output_tokens}
    for name in ("input_tokens", "cache_creation_input_tokens", "cache_read_input_tokens", "server_tool_use"):
        value = getattr(delta, name)
        if value is not None:
            update[name] = value
    return usage.model_copy(update=update)


class MessageAccumulator:
    """
    Builds one ``Message`` from one stream's events.

    Not reusable: create one per stream.

    Args:
        observer: Called with every event before it is applied. Exceptions it
            raises propagate to the caller and abort accumulation.

    Example:
        acc = MessageAccumulator()
        for event in events:
            acc.apply(event)
        message = acc.finish()
    """

    def __init__(self, observer: Optional[EventObserver] = None):
        self.observer = observer
        self._start: Optional[Message] = None
        self._blocks: Dict[int, BaseModel] = {}
        self._open: Optional[_BlockBuilder] = None
        self._last_index = -1
        self._stop_reason: Any = None
        self._stop_sequence: Optional[str] = None
        self._usage: Optional[Usage] = None
        self._final: Optional[Message] = None

    @property
    def done(self) -> bool:
        return self._final is not None

    @property
    def message(self) -> Optional[Message]:
        """The final message once ``message_stop`` has been applied."""
        return self._final

    def apply(self, event: Any) -> Optional[Message]:
        """
        Apply one event.

        Returns:
            The final message when ``event`` is ``message_stop``, else None

        Raises:
            StreamProtocolViolation: The event is out of order
            SerializationFailure: A tool block's accumulated input is not valid JSON
        """
        if self.observer is not None:
            self.observer(event)

        if isinstance(event, (PingEvent, UnknownVariant)):
            return None

        event_type = getattr(event, "type", type(event).__name__)
        if self._final is not None:
            raise StreamProtocolViolation(f"{event_type} received after message_stop", event_type)

        if isinstance(event, MessageStartEvent):
            if self._start is not None:
                raise StreamProtocolViolation("Duplicate message_start", event_type)
            self._start = event.message
            self._stop_reason = event.message.stop_reason
            self._stop_sequence = event.message.stop_sequence
            self._usage = event.message.usage
            return None

        if self._start is None:
            raise StreamProtocolViolation(f"{event_type} received before message_start", event_type)

        if isinstance(event, ContentBlockStartEvent):
            self._start_block(event)
        elif isinstance(event, ContentBlockDeltaEvent):
            self._require_open(event.index, event_type).apply(event.delta)
        elif isinstance(event, ContentBlockStopEvent):
            builder = self._require_open(event.index, event_type)
            self._blocks[builder.index] = builder.build()
            self._open = None
        elif isinstance(event, MessageDeltaEvent):
            self._require_closed(event_type)
            delta = event.delta
            if delta.stop_reason is not None:
                self._stop_reason = delta.stop_reason
            if "stop_sequence" in delta.model_fields_set:
                self._stop_sequence = delta.stop_sequence
            if event.usage is not None:
                self._usage = _merge_usage(self._usage or Usage(), event.usage)
        elif isinstance(event, MessageStopEvent):
            self._require_closed(event_type)
            self._final = self._build()
            return self._final
        else:
            raise StreamProtocolViolation(f"Unexpected event {event_type}", event_type)
        return None

    def finish(self) -> Message:
        """
        Return the final message.

        Raises:
            StreamProtocolViolation: The stream ended before ``message_stop``
        """
        if self._final is None:
            raise StreamProtocolViolation("Stream ended before message_stop")
        return self._final

    def _start_block(self, event: ContentBlockStartEvent) -> None:
        if self._open is not None:
            raise StreamProtocolViolation(
                f"content_block_start({event.index}) while block {self._open.index} is open",
                event.type,
            )
        if event.index <= self._last_index:
            raise StreamProtocolViolation(
                f"content_block_start index {event.index} does not follow {self._last_index}",
                event.type,
            )
        self._last_index = event.index
        self._open = _BlockBuilder(event.index, event.content_block)

    def _require_open(self, index: int, event_type: str) -> _BlockBuilder:
        if self._open is None or self._open.index != index:
            raise StreamProtocolViolation(f"{event_type} for block {index}, which is not open", event_type)
        return self._open

    def _require_closed(self, event_type: str) -> None:
        if self._open is not None:
            raise StreamProtocolViolation(
                f"{event_type} while block {self._open.index} is still open",
                event_type,
            )

    def _build(self) -> Message:
        content = list(self._start.content) + [self._blocks[i] for i in sorted(self._blocks)]
        return self._start.model_copy(update={
            "content": content,
            "stop_reason": self._stop_reason,
            "stop_sequence": self._stop_sequence,
            "usage": self._usage or self._start.usage,
        })
