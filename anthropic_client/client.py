"""
anthropic-client - Async Client

Usage:
    async with AsyncAnthropic(api_key="sk-ant-...") as client:
        message = await client.messages.create(
            model="claude-sonnet-4-6",
            max_tokens=1024,
            messages=[{"role": "user", "content": "Hello"}],
        )
        print(message.text())
"""

from typing import Any, Iterable, List, Optional, Union

import httpx

from .core.config import ClientConfig
from .core.errors import AuthenticationError
from .core.http_client import HttpTransport
from .core.middleware import (
    BetaHeadersMiddleware,
    DefaultHeadersMiddleware,
    Middleware,
    MiddlewareChain,
    MiddlewareFunc,
    TracePropagationMiddleware,
)
from .core.retry import RetryPolicy
from .observability.logging import get_logger
from .resources import Batches, Beta, Messages, Models


logger = get_logger(__name__)


class AsyncAnthropic:
    """
    Async client for the Anthropic API.

    Options not given explicitly are read from ``ANTHROPIC_*`` environment
    variables (see ``ClientConfig.from_env``).

    Args:
        api_key: API key. Defaults to ``ANTHROPIC_API_KEY``.
        config: Complete configuration; keyword options override its fields
        middleware: Extra middleware, run inside the built-in header middleware
        adapter: Cloud adapter middleware, run innermost
        retry_policy: Overrides the policy built from ``max_retries``
        http_client: Shared ``httpx.AsyncClient``; not closed by ``aclose``
        **options: ``ClientConfig`` fields (base_url, max_retries, timeout, ...)

    Raises:
        AuthenticationError: No API key and no middleware that authenticates
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        middleware: Optional[Iterable[Union[Middleware, MiddlewareFunc]]] = None,
        adapter: Optional[Middleware] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        **options: Any,
    ):
        if api_key is not None:
            options["api_key"] = api_key
        if config is None:
            config = ClientConfig.from_env(**options)
        elif options:
            config = config.with_options(**options)
        self.config = config

        extra: List[Union[Middleware, MiddlewareFunc]] = list(middleware or [])
        if adapter is not None:
            extra.append(adapter)

        if not config.api_key and not any(getattr(m, "supplies_auth", False) for m in extra):
            raise AuthenticationError(
                "API key required. Set ANTHROPIC_API_KEY or pass api_key, or use a cloud adapter."
            )

        chain = MiddlewareChain([
            DefaultHeadersMiddleware(
                api_key=config.api_key or None,
                user_agent=config.user_agent,
                default_headers=config.default_headers,
            ),
            BetaHeadersMiddleware(config.beta_features),
            TracePropagationMiddleware(),
            *extra,
        ])

        self.transport = HttpTransport(
            config.base_url,
            middleware=chain,
            retry_policy=retry_policy or RetryPolicy(max_retries=config.max_retries),
            http_client=http_client,
            timeout=config.timeout,
            provider=getattr(adapter, "provider", "anthropic"),
        )

        self.messages = Messages(self)
        self.models = Models(self)
        self.batches = Batches(self)
        self.beta = Beta(self)

        logger.debug(
            "Client initialized",
            base_url=config.base_url,
            provider=self.transport.provider,
            middleware_count=len(chain),
        )

    @classmethod
    def with_adapter(cls, adapter: Any, **kwargs: Any) -> "AsyncAnthropic":
        """Client that targets ``adapter.base_url`` and lets the adapter authenticate."""
        kwargs.setdefault("base_url", adapter.base_url)
        kwargs.setdefault("api_key", "")
        config = kwargs.pop("config", None) or ClientConfig()
        return cls(config=config, adapter=adapter, **kwargs)

    async def aclose(self) -> None:
        """Close pooled connections (only if this client created the pool)."""
        await self.transport.aclose()

    async def __aenter__(self) -> "AsyncAnthropic":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"AsyncAnthropic(base_url={self.config.base_url!r}, provider={self.transport.provider!r})"
