"""
anthropic-client - Client Configuration
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .._version import __version__
from .errors import AnthropicError


DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_TIMEOUT = 600.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_USER_AGENT = f"anthropic-client/python {__version__}"


@dataclass
class ClientConfig:
    """
    Configuration consumed by the client and its transport.

    Attributes:
        api_key: API key sent as ``x-api-key`` (may be empty when a middleware authenticates)
        base_url: Scheme and host of the API, without the ``/v1`` prefix
        max_retries: Retries after the first attempt
        timeout: Per-attempt timeout in seconds
        default_headers: Extra headers sent on every request
        user_agent: ``user-agent`` header value
        beta_features: Beta flags sent on every request
    """
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout: float = DEFAULT_TIMEOUT
    default_headers: Dict[str, str] = field(default_factory=dict)
    user_agent: str = DEFAULT_USER_AGENT
    beta_features: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self.max_retries < 0:
            raise AnthropicError("max_retries must be >= 0")
        if self.timeout <= 0:
            raise AnthropicError("timeout must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None, **overrides: Any) -> "ClientConfig":
        """
        Build a configuration from ``ANTHROPIC_*`` environment variables.

        Reads ``ANTHROPIC_API_KEY``, ``ANTHROPIC_BASE_URL``,
        ``ANTHROPIC_MAX_RETRIES`` and ``ANTHROPIC_TIMEOUT``. Keyword overrides
        that are not None take precedence.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {
            "api_key": env.get("ANTHROPIC_API_KEY", ""),
            "base_url": env.get("ANTHROPIC_BASE_URL") or DEFAULT_BASE_URL,
        }

        raw_retries = env.get("ANTHROPIC_MAX_RETRIES")
        if raw_retries:
            try:
                values["max_retries"] = int(raw_retries)
            except ValueError as e:
                raise AnthropicError(f"ANTHROPIC_MAX_RETRIES must be an integer, got {raw_retries!r}") from e

        raw_timeout = env.get("ANTHROPIC_TIMEOUT")
        if raw_timeout:
            try:
                values["timeout"] = float(raw_timeout)
            except ValueError as e:
                raise AnthropicError(f"ANTHROPIC_TIMEOUT must be a number, got {raw_timeout!r}") from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_options(self, **changes: Any) -> "ClientConfig":
        """Copy with some fields replaced."""
        return replace(self, **changes)

    def __repr__(self) -> str:
        masked = f"{self.api_key[:7]}..." if self.api_key else ""
        return (
            f"ClientConfig(api_key={masked!r}, base_url={self.base_url!r}, "
            f"max_retries={self.max_retries}, timeout={self.timeout})"
        )
