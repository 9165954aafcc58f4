"""
anthropic-client - OAuth Bearer Authentication

Authenticates against the Anthropic API with OAuth access tokens instead of
an API key:
- The access token is refreshed shortly before it expires
- Concurrent callers share a single refresh
- A 401 invalidates the token and the request is sent once more

Usage:
    client = OAuthConfig(
        tokens=OAuthTokens(access_token, refresh_token, expires_at_ms),
        client_id="my-client-id",
        refresh_endpoint="https://auth.example.com/oauth/token",
        on_refresh=save_tokens,
    ).into_client()
"""

import asyncio
import time
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from ..core.errors import AuthenticationError, SerializationFailure
from ..core.middleware import CallNext, Middleware, MiddlewareContext, merge_betas
from ..observability.logging import get_logger
from .base import maybe_await


logger = get_logger(__name__)

OAUTH_BETA = "oauth-2025-04-20"
EXPIRY_BUFFER_MS = 5 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class OAuthTokens:
    """
    Access and refresh token pair.

    Attributes:
        access_token: Bearer token sent with requests
        refresh_token: Exchanged for a new access token
        expires_at: Expiry as Unix time in milliseconds
    """
    access_token: str
    refresh_token: str
    expires_at: int

    def is_fresh(self, at_ms: Optional[int] = None) -> bool:
        """True while the token is valid for at least the expiry buffer."""
        at_ms = now_ms() if at_ms is None else at_ms
        return at_ms < self.expires_at - EXPIRY_BUFFER_MS


RefreshCallback = Callable[[OAuthTokens], Union[None, Awaitable[None]]]


class OAuthMiddleware(Middleware):
    """
    Sends ``Authorization: Bearer`` with a refreshed OAuth access token.

    Also removes ``x-api-key``, marks the request for direct browser access
    and adds the OAuth beta flag. Refresh failures surface as
    ``MiddlewareFailure`` wrapping an ``AuthenticationError``.

    Args:
        tokens: Current token pair
        client_id: OAuth client id used for refreshes
        refresh_endpoint: Token endpoint
        on_refresh: Called with the new pair after every refresh; may be async
        http_client: Client for refresh calls; a short-lived one is used if omitted
    """

    supplies_auth = True

    def __init__(
        self,
        tokens: OAuthTokens,
        client_id: str,
        refresh_endpoint: str,
        on_refresh: Optional[RefreshCallback] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._tokens = tokens
        self.client_id = client_id
        self.refresh_endpoint = refresh_endpoint
        self.on_refresh = on_refresh
        self._http_client = http_client
        self._lock = asyncio.Lock()

    @property
    def tokens(self) -> OAuthTokens:
        return self._tokens

    def invalidate(self) -> None:
        """Force a refresh on the next request."""
        self._tokens = replace(self._tokens, expires_at=0)

    async def get_token(self) -> str:
        """Current access token, refreshing it first when close to expiry."""
        if self._tokens.is_fresh():
            return self._tokens.access_token

        async with self._lock:
            # another caller may have refreshed while we waited
            if self._tokens.is_fresh():
                return self._tokens.access_token
            self._tokens = await self._refresh(self._tokens.refresh_token)
            if self.on_refresh is not None:
                await maybe_await(self.on_refresh(self._tokens))
            return self._tokens.access_token

    async def _refresh(self, refresh_token: str) -> OAuthTokens:
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
        }
        logger.debug("Refreshing OAuth token", endpoint=self.refresh_endpoint)

        if self._http_client is not None:
            response = await self._http_client.post(self.refresh_endpoint, json=payload)
        else:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(self.refresh_endpoint, json=payload)

        if response.status_code in (401, 403):
            logger.warning("OAuth refresh rejected", status=response.status_code)
            raise AuthenticationError("OAuth refresh token invalid or revoked", status=response.status_code)
        if not response.is_success:
            logger.warning("OAuth refresh failed", status=response.status_code)
            raise AuthenticationError(
                f"OAuth token refresh failed with status {response.status_code}",
                status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise SerializationFailure("OAuth token response is not valid JSON", payload=response.text, cause=e) from e
        if not isinstance(body, dict) or not body.get("access_token"):
            raise AuthenticationError("OAuth token response has no access_token", status=response.status_code)

        expires_in = int(body.get("expires_in") or 0)
        tokens = OAuthTokens(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token") or refresh_token,
            expires_at=now_ms() + expires_in * 1000,
        )
        logger.info("OAuth token refreshed", expires_in=expires_in)
        return tokens

    def _apply(self, ctx: MiddlewareContext, token: str) -> None:
        headers = ctx.request.headers
        headers.pop("x-api-key", None)
        headers["authorization"] = f"Bearer {token}"
        headers["anthropic-dangerous-direct-browser-access"] = "true"
        headers["anthropic-beta"] = ",".join(merge_betas(headers.get_list("anthropic-beta"), [OAUTH_BETA]))

    async def handle(self, ctx: MiddlewareContext, call_next: CallNext) -> httpx.Response:
        original = ctx.request.copy()
        self._apply(ctx, await self.get_token())
        response = await call_next(ctx)
        if response.status_code != 401:
            return response

        await response.aclose()
        logger.info("Access token rejected, refreshing", attempt=ctx.attempt)
        self.invalidate()
        token = await self.get_token()
        ctx.request = original.copy()
        self._apply(ctx, token)
        return await call_next(ctx)


@dataclass
class OAuthConfig:
    """
    Settings for an OAuth-authenticated client.

    Example:
        client = OAuthConfig(tokens, "my-client", token_endpoint).into_client()
    """
    tokens: OAuthTokens
    client_id: str
    refresh_endpoint: str
    on_refresh: Optional[RefreshCallback] = None
    max_retries: int = 2
    timeout: float = 600.0

    def middleware(self, http_client: Optional[httpx.AsyncClient] = None) -> OAuthMiddleware:
        return OAuthMiddleware(
            self.tokens,
            self.client_id,
            refresh_endpoint=self.refresh_endpoint,
            on_refresh=self.on_refresh,
            http_client=http_client,
        )

    def into_client(self, **kwargs: Any):
        from ..client import AsyncAnthropic

        middleware = [self.middleware(kwargs.get("http_client")), *kwargs.pop("middleware", [])]
        kwargs.setdefault("api_key", "")
        return AsyncAnthropic(
            middleware=middleware,
            max_retries=self.max_retries,
            timeout=self.timeout,
            **kwargs,
        )
