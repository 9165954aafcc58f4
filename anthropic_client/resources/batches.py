"""
anthropic-client - Message Batches Resource

Results are a JSONL body read line by line. A malformed line does not stop
iteration: ``results`` yields a ``SerializationFailure`` in its place.

Usage:
    batch = await client.batches.create([
        {"custom_id": "a", "params": {"model": "claude-haiku-4-5", "max_tokens": 64, "messages": [...]}},
    ])
    async for item in client.batches.results(batch.id):
        if isinstance(item, SerializationFailure):
            continue
        print(item.custom_id, item.result.type)
"""

from typing import Any, AsyncIterator, List, Optional, Union

import httpx

from ..core.errors import SerializationFailure
from ..core.http_client import map_transport_error
from ..observability.logging import get_logger
from ..types.batch import BatchResult, DeletedMessageBatch, MessageBatch, batch_requests
from ..types.codec import decode, decode_json
from ..types.message import Page
from .base import APIResource


logger = get_logger(__name__)

BATCHES_PATH = "/v1/messages/batches"


class Batches(APIResource):
    """The ``/v1/messages/batches`` endpoints."""

    async def create(self, requests: List[Any]) -> MessageBatch:
        """
        Submit a batch.

        Args:
            requests: ``BatchRequest`` models or dicts with ``custom_id`` and ``params``
        """
        body = {"requests": batch_requests(requests)}
        data = await self._request("POST", BATCHES_PATH, body=body)
        return decode(MessageBatch, data)

    async def get(self, batch_id: str) -> MessageBatch:
        data = await self._request("GET", f"{BATCHES_PATH}/{batch_id}")
        return decode(MessageBatch, data)

    async def list(
        self,
        limit: Optional[int] = None,
        after_id: Optional[str] = None,
        before_id: Optional[str] = None,
    ) -> Page[MessageBatch]:
        data = await self._request(
            "GET",
            BATCHES_PATH,
            params={"limit": limit, "after_id": after_id, "before_id": before_id},
        )
        return decode(Page[MessageBatch], data)

    async def cancel(self, batch_id: str) -> MessageBatch:
        """Request cancellation; the batch moves to ``canceling``."""
        data = await self._request("POST", f"{BATCHES_PATH}/{batch_id}/cancel")
        return decode(MessageBatch, data)

    async def delete(self, batch_id: str) -> DeletedMessageBatch:
        data = await self._request("DELETE", f"{BATCHES_PATH}/{batch_id}")
        return decode(DeletedMessageBatch, data)

    async def results(self, batch_id: str) -> AsyncIterator[Union[BatchResult, SerializationFailure]]:
        """
        Stream the results of an ended batch.

        Yields:
            A ``BatchResult`` per line, or a ``SerializationFailure`` for a line
            that could not be decoded
        """
        response = await self._stream("GET", f"{BATCHES_PATH}/{batch_id}/results")
        try:
            line_number = 0
            async for line in response.aiter_lines():
                line_number += 1
                if not line.strip():
                    continue
                try:
                    yield decode_json(BatchResult, line)
                except SerializationFailure as e:
                    logger.warning(
                        "Skipping malformed batch result line",
                        batch_id=batch_id,
                        line_number=line_number,
                    )
                    yield e
        except httpx.HTTPError as e:
            raise map_transport_error(e) from e
        finally:
            await response.aclose()
