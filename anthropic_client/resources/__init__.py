"""
anthropic-client - API Resources

Service objects exposed on the client: ``messages``, ``models``,
``batches`` and ``beta``.
"""

from .base import APIResource
from .batches import Batches
from .beta import Beta
from .messages import Messages
from .models import Models

__all__ = [
    "APIResource",
    "Batches",
    "Beta",
    "Messages",
    "Models",
]
