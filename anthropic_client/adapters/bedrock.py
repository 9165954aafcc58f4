"""
anthropic-client - AWS Bedrock Adapter

Routes Messages calls to Bedrock's ``invoke`` endpoints:

    POST /v1/messages {"model": m, "stream": false, ...}
      -> POST /model/{m}/invoke {"anthropic_version": "bedrock-2023-05-31", ...}
    POST /v1/messages {"model": m, "stream": true, ...}
      -> POST /model/{m}/invoke-with-response-stream

Request signing (SigV4) is supplied by the caller as ``signer``, a callable
(sync or async) that receives the final envelope and adds its headers.

Bedrock frames streaming responses as AWS event-stream messages; streaming
through this adapter requires a transport that delivers them as SSE.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.middleware import RequestEnvelope
from ..observability.logging import get_logger
from .base import COMPLETE_PATH, MESSAGES_PATH, CloudAdapter, Signer, maybe_await, quote_segment


logger = get_logger(__name__)

BEDROCK_VERSION = "bedrock-2023-05-31"


class BedrockMiddleware(CloudAdapter):
    """
    Rewrites requests for AWS Bedrock and signs them.

    Args:
        region: AWS region, e.g. ``us-east-1``
        signer: Adds authentication headers to the envelope; may be async
    """

    provider = "bedrock"
    anthropic_version = BEDROCK_VERSION

    def __init__(self, region: str, signer: Optional[Signer] = None):
        self.region = region
        self.signer = signer

    @property
    def base_url(self) -> str:
        return f"https://bedrock-runtime.{self.region}.amazonaws.com"

    def rewrite(self, envelope: RequestEnvelope) -> None:
        path = envelope.path
        if envelope.method != "POST" or not (path.endswith(MESSAGES_PATH) or path.endswith(COMPLETE_PATH)):
            return

        body = self.inject_version(envelope)
        if body is None:
            return

        result = self.take_model(envelope, body, keep_stream=False)
        action = "invoke-with-response-stream" if result.stream else "invoke"
        self.set_path(envelope, f"/model/{quote_segment(result.model)}/{action}")
        logger.debug("Rewrote request for Bedrock", model=result.model, action=action)

    async def authenticate(self, envelope: RequestEnvelope) -> None:
        if self.signer is not None:
            await maybe_await(self.signer(envelope))


@dataclass
class BedrockConfig:
    """
    Settings for a Bedrock-backed client.

    Example:
        client = BedrockConfig(region="us-east-1", signer=sign_v4).into_client()
    """
    region: str
    signer: Optional[Signer] = None
    max_retries: int = 2
    timeout: float = 600.0

    def middleware(self) -> BedrockMiddleware:
        return BedrockMiddleware(self.region, self.signer)

    def into_client(self, **kwargs):
        from ..client import AsyncAnthropic

        return AsyncAnthropic.with_adapter(
            self.middleware(),
            max_retries=self.max_retries,
            timeout=self.timeout,
            **kwargs,
        )
