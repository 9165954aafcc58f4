"""
anthropic-client - Citation Types

Citations attached to text blocks. ``TextCitation`` is a tagged union on
``type``; unrecognized citation kinds decode to ``UnknownCitation``.
"""

from typing import Literal, Optional

from pydantic import BaseModel

from .codec import UnknownVariant, tagged_union


class CharLocationCitation(BaseModel):
    type: Literal["char_location"] = "char_location"
    cited_text: str
    document_index: int
    document_title: Optional[str] = None
    start_char_index: int
    end_char_index: int


class PageLocationCitation(BaseModel):
    type: Literal["page_location"] = "page_location"
    cited_text: str
    document_index: int
    document_title: Optional[str] = None
    start_page_number: int
    end_page_number: int


class ContentBlockLocationCitation(BaseModel):
    type: Literal["content_block_location"] = "content_block_location"
    cited_text: str
    document_index: int
    document_title: Optional[str] = None
    start_block_index: int
    end_block_index: int


class WebSearchResultLocationCitation(BaseModel):
    type: Literal["web_search_result_location"] = "web_search_result_location"
    cited_text: str
    url: str
    title: Optional[str] = None
    encrypted_index: str


class UnknownCitation(UnknownVariant):
    """Citation kind introduced after this client was released."""


TextCitation = tagged_union(
    CharLocationCitation,
    PageLocationCitation,
    ContentBlockLocationCitation,
    WebSearchResultLocationCitation,
    unknown=UnknownCitation,
)
