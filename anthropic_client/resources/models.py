"""
anthropic-client - Models Resource
"""

from typing import Optional

from ..types.codec import decode
from ..types.message import Page
from ..types.model import ModelInfo
from .base import APIResource


class Models(APIResource):
    """The ``/v1/models`` endpoints."""

    async def get(self, model_id: str) -> ModelInfo:
        """
        Get one model.

        Args:
            model_id: Model identifier or alias known to the API

        Returns:
            ModelInfo for the model
        """
        data = await self._request("GET", f"/v1/models/{model_id}")
        return decode(ModelInfo, data)

    async def list(
        self,
        limit: Optional[int] = None,
        after_id: Optional[str] = None,
        before_id: Optional[str] = None,
    ) -> Page[ModelInfo]:
        """List available models, most recent first."""
        data = await self._request(
            "GET",
            "/v1/models",
            params={"limit": limit, "after_id": after_id, "before_id": before_id},
        )
        return decode(Page[ModelInfo], data)
