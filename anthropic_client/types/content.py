"""
anthropic-client - Content Block Types

Response content blocks (``ContentBlock``) and request content block params
(``ContentBlockParam``), both tagged unions on ``type``.

Untagged unions defined here, in decode order:

- ``ToolResultContent``: ``str`` first, then a list of text/image params.
  A plain string can never validate as a list, so the order only matters for
  readability, but it is pinned by tests like every other untagged union.
- ``WebSearchToolResultContent``: ``List[WebSearchResult]`` first, then
  ``WebSearchToolRequestError``, then a catch-all that accepts any JSON value.
  The error object must precede the catch-all, otherwise every error payload
  would decode as a bare dict.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .citation import TextCitation
from .codec import UnknownVariant, tagged_union, untagged_union


class CacheControlEphemeral(BaseModel):
    type: Literal["ephemeral"] = "ephemeral"
    ttl: Optional[str] = None


# ============================================================
# Response blocks
# ============================================================

class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str
    citations: Optional[List[TextCitation]] = None


class ThinkingBlock(BaseModel):
    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str = ""


class RedactedThinkingBlock(BaseModel):
    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


class ToolUseBlock(BaseModel):
    """A client tool call requested by the model."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any = Field(default_factory=dict)


class ServerToolUseBlock(BaseModel):
    """A server-side tool call (e.g. web search) executed by the API."""

    type: Literal["server_tool_use"] = "server_tool_use"
    id: str
    name: str
    input: Any = Field(default_factory=dict)


class WebSearchResult(BaseModel):
    type: Literal["web_search_result"] = "web_search_result"
    url: str
    title: str
    encrypted_content: str
    page_age: Optional[str] = None


class WebSearchToolRequestError(BaseModel):
    type: Literal["web_search_tool_result_error"] = "web_search_tool_result_error"
    error_code: str


WebSearchToolResultContent = untagged_union(
    List[WebSearchResult],
    WebSearchToolRequestError,
    Any,
)


class WebSearchToolResultBlock(BaseModel):
    type: Literal["web_search_tool_result"] = "web_search_tool_result"
    tool_use_id: str
    content: WebSearchToolResultContent


class UnknownContentBlock(UnknownVariant):
    """Content block kind introduced after this client was released."""


ContentBlock = tagged_union(
    TextBlock,
    ThinkingBlock,
    RedactedThinkingBlock,
    ToolUseBlock,
    ServerToolUseBlock,
    WebSearchToolResultBlock,
    unknown=UnknownContentBlock,
)


# ============================================================
# Request params
# ============================================================

class TextBlockParam(BaseModel):
    type: Literal["text"] = "text"
    text: str
    cache_control: Optional[CacheControlEphemeral] = None
    citations: Optional[List[Dict[str, Any]]] = None


class Base64ImageSource(BaseModel):
    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class URLImageSource(BaseModel):
    type: Literal["url"] = "url"
    url: str


class UnknownImageSource(UnknownVariant):
    pass


ImageSource = tagged_union(Base64ImageSource, URLImageSource, unknown=UnknownImageSource)


class ImageBlockParam(BaseModel):
    type: Literal["image"] = "image"
    source: ImageSource
    cache_control: Optional[CacheControlEphemeral] = None


class DocumentBlockParam(BaseModel):
    type: Literal["document"] = "document"
    source: Dict[str, Any]
    title: Optional[str] = None
    context: Optional[str] = None
    citations: Optional[Dict[str, Any]] = None
    cache_control: Optional[CacheControlEphemeral] = None


class UnknownContentBlockParam(UnknownVariant):
    pass


ToolResultContentBlock = tagged_union(
    TextBlockParam,
    ImageBlockParam,
    unknown=UnknownContentBlockParam,
)

ToolResultContent = untagged_union(str, List[ToolResultContentBlock])


class ToolUseBlockParam(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any = Field(default_factory=dict)
    cache_control: Optional[CacheControlEphemeral] = None


class ToolResultBlockParam(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: Optional[ToolResultContent] = None
    is_error: Optional[bool] = None
    cache_control: Optional[CacheControlEphemeral] = None


class ThinkingBlockParam(BaseModel):
    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str


class RedactedThinkingBlockParam(BaseModel):
    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


ContentBlockParam = tagged_union(
    TextBlockParam,
    ImageBlockParam,
    DocumentBlockParam,
    ToolUseBlockParam,
    ToolResultBlockParam,
    ThinkingBlockParam,
    RedactedThinkingBlockParam,
    unknown=UnknownContentBlockParam,
)
