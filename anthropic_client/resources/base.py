"""
anthropic-client - Resource Base
"""

from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional

import httpx

from ..core.middleware import merge_betas

if TYPE_CHECKING:
    from ..client import AsyncAnthropic


class APIResource:
    """Shared plumbing for service objects bound to one client."""

    def __init__(self, client: "AsyncAnthropic"):
        self._client = client

    @property
    def _transport(self):
        return self._client.transport

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        betas: Optional[Iterable[str]] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Run a non-streaming call; returns the decoded JSON body."""
        envelope = self._transport.envelope(method, path, body=body, params=params, headers=extra_headers)
        return await self._transport.execute(envelope, betas=list(betas or []))

    async def _stream(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        betas: Optional[Iterable[str]] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Run a streaming call; returns the open response, which the caller closes."""
        envelope = self._transport.envelope(method, path, body=body, params=params, headers=extra_headers)
        return await self._transport.execute_stream(envelope, betas=list(betas or []))

    def _all_betas(self, *groups: Optional[Iterable[str]]) -> List[str]:
        """Per-call and bound flags merged with the client-wide ones."""
        return merge_betas(self._client.config.beta_features, *(g or [] for g in groups))
