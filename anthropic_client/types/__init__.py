"""
anthropic-client - Payload Types

Every polymorphic payload follows the union codec in ``codec.py``.
"""

from .codec import (
    OpenEnum,
    UnknownVariant,
    decode,
    decode_json,
    encode,
    tagged_union,
    untagged_union,
)
from .citation import (
    CharLocationCitation,
    ContentBlockLocationCitation,
    PageLocationCitation,
    TextCitation,
    UnknownCitation,
    WebSearchResultLocationCitation,
)
from .content import (
    CacheControlEphemeral,
    ContentBlock,
    ContentBlockParam,
    ImageBlockParam,
    RedactedThinkingBlock,
    ServerToolUseBlock,
    TextBlock,
    TextBlockParam,
    ThinkingBlock,
    ToolResultBlockParam,
    ToolResultContent,
    ToolUseBlock,
    UnknownContentBlock,
    WebSearchResult,
    WebSearchToolRequestError,
    WebSearchToolResultBlock,
    WebSearchToolResultContent,
)
from .model import Model, ModelInfo, ModelSpec, StopReason
from .message import (
    CountTokensParams,
    ErrorObject,
    ErrorResponse,
    Message,
    MessageCreateParams,
    MessageDeltaUsage,
    MessageParam,
    MessageTokensCount,
    Page,
    SystemPrompt,
    Usage,
)
from .batch import (
    BatchProcessingStatus,
    BatchRequest,
    BatchResult,
    BatchResultBody,
    DeletedMessageBatch,
    MessageBatch,
)

__all__ = [
    # Codec
    "OpenEnum",
    "UnknownVariant",
    "decode",
    "decode_json",
    "encode",
    "tagged_union",
    "untagged_union",
    # Citations
    "CharLocationCitation",
    "ContentBlockLocationCitation",
    "PageLocationCitation",
    "TextCitation",
    "UnknownCitation",
    "WebSearchResultLocationCitation",
    # Content
    "CacheControlEphemeral",
    "ContentBlock",
    "ContentBlockParam",
    "ImageBlockParam",
    "RedactedThinkingBlock",
    "ServerToolUseBlock",
    "TextBlock",
    "TextBlockParam",
    "ThinkingBlock",
    "ToolResultBlockParam",
    "ToolResultContent",
    "ToolUseBlock",
    "UnknownContentBlock",
    "WebSearchResult",
    "WebSearchToolRequestError",
    "WebSearchToolResultBlock",
    "WebSearchToolResultContent",
    # Models
    "Model",
    "ModelInfo",
    "ModelSpec",
    "StopReason",
    # Messages
    "CountTokensParams",
    "ErrorObject",
    "ErrorResponse",
    "Message",
    "MessageCreateParams",
    "MessageDeltaUsage",
    "MessageParam",
    "MessageTokensCount",
    "Page",
    "SystemPrompt",
    "Usage",
    # Batches
    "BatchProcessingStatus",
    "BatchRequest",
    "BatchResult",
    "BatchResultBody",
    "DeletedMessageBatch",
    "MessageBatch",
]
