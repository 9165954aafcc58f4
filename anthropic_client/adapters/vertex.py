"""
anthropic-client - Google Vertex AI Adapter

Routes Messages calls to Vertex AI's publisher model endpoints:

    POST /v1/messages            -> .../publishers/anthropic/models/{m}:rawPredict
    POST /v1/messages (stream)   -> .../publishers/anthropic/models/{m}:streamRawPredict
    POST /v1/messages/count_tokens -> .../publishers/anthropic/models/count-tokens:rawPredict

An OAuth access token is obtained per attempt from ``token_provider`` (sync
or async) and sent as ``Authorization: Bearer``.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.errors import AuthenticationError
from ..core.middleware import RequestEnvelope
from ..observability.logging import get_logger
from .base import COUNT_TOKENS_PATH, MESSAGES_PATH, CloudAdapter, TokenProvider, maybe_await, quote_segment


logger = get_logger(__name__)

VERTEX_VERSION = "vertex-2023-10-16"


class VertexMiddleware(CloudAdapter):
    """
    Rewrites requests for Vertex AI and attaches a bearer token.

    Args:
        region: Vertex region, e.g. ``us-east5``, or ``global``
        project_id: Google Cloud project
        token_provider: Returns an access token; may be async
    """

    provider = "vertex"
    anthropic_version = VERTEX_VERSION

    def __init__(self, region: str, project_id: str, token_provider: TokenProvider):
        self.region = region
        self.project_id = project_id
        self.token_provider = token_provider

    @property
    def base_url(self) -> str:
        if self.region == "global":
            return "https://aiplatform.googleapis.com"
        return f"https://{self.region}-aiplatform.googleapis.com"

    @property
    def models_path(self) -> str:
        return (
            f"/v1/projects/{quote_segment(self.project_id)}/locations/{quote_segment(self.region)}"
            "/publishers/anthropic/models"
        )

    def rewrite(self, envelope: RequestEnvelope) -> None:
        if envelope.method != "POST":
            return

        path = envelope.path
        if path.endswith(COUNT_TOKENS_PATH):
            if self.inject_version(envelope) is None:
                return
            self.set_path(envelope, f"{self.models_path}/count-tokens:rawPredict")
            return

        if not path.endswith(MESSAGES_PATH):
            return

        body = self.inject_version(envelope)
        if body is None:
            return

        result = self.take_model(envelope, body, keep_stream=True)
        action = "streamRawPredict" if result.stream else "rawPredict"
        self.set_path(envelope, f"{self.models_path}/{quote_segment(result.model)}:{action}")
        logger.debug("Rewrote request for Vertex", model=result.model, action=action)

    async def authenticate(self, envelope: RequestEnvelope) -> None:
        token = await maybe_await(self.token_provider())
        if not token:
            raise AuthenticationError("Vertex token provider returned an empty token")
        envelope.headers["authorization"] = f"Bearer {token}"


@dataclass
class VertexConfig:
    """
    Settings for a Vertex-backed client.

    Example:
        client = VertexConfig(region="us-east5", project_id="my-project",
                              token_provider=fetch_token).into_client()
    """
    region: str
    project_id: str
    token_provider: TokenProvider
    max_retries: int = 2
    timeout: float = 600.0

    def middleware(self) -> VertexMiddleware:
        return VertexMiddleware(self.region, self.project_id, self.token_provider)

    def into_client(self, **kwargs):
        from ..client import AsyncAnthropic

        return AsyncAnthropic.with_adapter(
            self.middleware(),
            max_retries=self.max_retries,
            timeout=self.timeout,
            **kwargs,
        )
