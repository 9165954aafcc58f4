"""
anthropic-client - Message Types

Untagged unions defined here, in decode order:

- ``MessageContent``: ``str`` first, then ``List[ContentBlockParam]``.
- ``SystemPrompt``: ``str`` first, then ``List[TextBlockParam]``.
"""

from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .content import ContentBlock, ContentBlockParam, TextBlockParam
from .codec import untagged_union
from .model import Model, StopReason


T = TypeVar("T")

Role = Literal["user", "assistant"]


class ServerToolUsage(BaseModel):
    web_search_requests: Optional[int] = None


class Usage(BaseModel):
    """Token usage reported with a message."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: Optional[int] = None
    cache_read_input_tokens: Optional[int] = None
    server_tool_use: Optional[ServerToolUsage] = None
    service_tier: Optional[str] = None


class MessageDeltaUsage(BaseModel):
    """Cumulative usage carried by a ``message_delta`` event."""

    output_tokens: int
    input_tokens: Optional[int] = None
    cache_creation_input_tokens: Optional[int] = None
    cache_read_input_tokens: Optional[int] = None
    server_tool_use: Optional[ServerToolUsage] = None


class Message(BaseModel):
    """
    A complete assistant message.

    Returned by ``messages.create`` and produced by the stream accumulator
    on ``message_stop``. Instances are immutable.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["message"] = "message"
    role: Literal["assistant"] = "assistant"
    content: List[ContentBlock] = Field(default_factory=list)
    model: Model
    stop_reason: Optional[StopReason] = None
    stop_sequence: Optional[str] = None
    usage: Usage = Field(default_factory=Usage)

    def text(self) -> str:
        """Concatenated text of every text block."""
        return "".join(getattr(block, "text", "") for block in self.content if block.type == "text")


MessageContent = untagged_union(str, List[ContentBlockParam])

SystemPrompt = untagged_union(str, List[TextBlockParam])


class MessageParam(BaseModel):
    role: Role
    content: MessageContent


class MessageTokensCount(BaseModel):
    input_tokens: int


class Page(BaseModel, Generic[T]):
    """One page of a list endpoint."""

    data: List[T]
    has_more: bool = False
    first_id: Optional[str] = None
    last_id: Optional[str] = None


class ErrorObject(BaseModel):
    """The nested ``error`` object of an error response body."""

    model_config = ConfigDict(extra="allow")

    type: str
    message: str = ""


class ErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    error: ErrorObject


class MessageCreateParams(BaseModel):
    """
    Request body for ``/v1/messages``.

    Only the fields the client inspects are typed; everything else passes
    through unchanged.
    """

    model_config = ConfigDict(extra="allow")

    model: Model
    max_tokens: int
    messages: List[MessageParam]
    system: Optional[SystemPrompt] = None
    thinking: Optional[Dict[str, Any]] = None
    stream: Optional[bool] = None


class CountTokensParams(BaseModel):
    """Request body for ``/v1/messages/count_tokens``."""

    model_config = ConfigDict(extra="allow")

    model: Model
    messages: List[MessageParam]
    system: Optional[SystemPrompt] = None
    thinking: Optional[Dict[str, Any]] = None
