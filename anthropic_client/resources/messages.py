"""
anthropic-client - Messages Resource

Usage:
    message = await client.messages.create(
        model="claude-sonnet-4-6",
        max_tokens=1024,
        messages=[{"role": "user", "content": "Hello"}],
    )

    async with await client.messages.stream(...) as stream:
        message = await stream.accumulate()
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..observability.logging import get_logger
from ..streaming.stream import MessageStream
from ..types.codec import decode, encode
from ..types.message import CountTokensParams, Message, MessageCreateParams, MessageTokensCount
from ..types.model import Model
from .base import APIResource


logger = get_logger(__name__)

MESSAGES_PATH = "/v1/messages"
COUNT_TOKENS_PATH = "/v1/messages/count_tokens"


class Messages(APIResource):
    """
    The ``/v1/messages`` endpoints.

    Args:
        client: Owning client
        betas: Beta flags sent with every call made through this object
    """

    def __init__(self, client: Any, betas: Optional[Iterable[str]] = None):
        super().__init__(client)
        self.betas: List[str] = list(betas or [])

    def with_betas(self, betas: Iterable[str]) -> "Messages":
        """A messages resource that adds ``betas`` to every call."""
        return Messages(self._client, [*self.betas, *betas])

    async def create(
        self,
        *,
        betas: Optional[Iterable[str]] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
        **params: Any,
    ) -> Message:
        """
        Create a message.

        Args:
            betas: Beta flags for this call
            extra_headers: Headers for this call; they win over client defaults
            **params: Request body fields (``model``, ``max_tokens``, ``messages``, ...)

        Returns:
            The assistant's message

        Raises:
            SerializationFailure: ``params`` or the response do not have the expected shape
            ApiError: The API rejected the request
            RetriesExhausted: Retryable failures persisted past the retry budget
        """
        call_betas = [*self.betas, *(betas or [])]
        body = self._prepare(params, MessageCreateParams, stream=False)
        data = await self._request(
            "POST",
            MESSAGES_PATH,
            body=body,
            params=self._beta_query(call_betas),
            betas=call_betas,
            extra_headers=extra_headers,
        )
        return decode(Message, data)

    async def stream(
        self,
        *,
        betas: Optional[Iterable[str]] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
        **params: Any,
    ) -> MessageStream:
        """
        Create a message and stream it as typed events.

        Retries apply until the response status arrives; the returned stream
        is never retried or restarted.

        Returns:
            An open ``MessageStream``; close it or use it as an async context manager
        """
        call_betas = [*self.betas, *(betas or [])]
        body = self._prepare(params, MessageCreateParams, stream=True)
        response = await self._stream(
            "POST",
            MESSAGES_PATH,
            body=body,
            params=self._beta_query(call_betas),
            betas=call_betas,
            extra_headers=extra_headers,
        )
        return MessageStream(response)

    async def count_tokens(
        self,
        *,
        betas: Optional[Iterable[str]] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
        **params: Any,
    ) -> MessageTokensCount:
        """Count the input tokens a message request would use."""
        call_betas = [*self.betas, *(betas or [])]
        body = self._prepare(params, CountTokensParams, stream=None)
        data = await self._request(
            "POST",
            COUNT_TOKENS_PATH,
            body=body,
            params=self._beta_query(call_betas),
            betas=call_betas,
            extra_headers=extra_headers,
        )
        return decode(MessageTokensCount, data)

    def _beta_query(self, call_betas: List[str]) -> Optional[Dict[str, str]]:
        if self._all_betas(call_betas):
            return {"beta": "true"}
        return None

    def _prepare(self, params: Dict[str, Any], schema: Any, stream: Optional[bool]) -> Dict[str, Any]:
        body: Dict[str, Any] = encode(params)
        model = body.get("model")
        if isinstance(model, str):
            resolved = Model.parse(model)
            body["model"] = resolved.value
            if body.get("thinking") is not None and not resolved.supports_extended_thinking:
                logger.debug("Dropping thinking config for model without extended thinking", model=resolved.value)
                body.pop("thinking")

        if stream is not None:
            body["stream"] = stream

        # shape check only; the caller's fields are sent as given
        decode(schema, body)
        return body
