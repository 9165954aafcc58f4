"""
anthropic-client - Cloud Provider Adapters

Middleware that retargets the client at Anthropic models hosted on AWS
Bedrock or Google Vertex AI, or authenticates it with OAuth tokens.
"""

from .base import CloudAdapter
from .bedrock import BEDROCK_VERSION, BedrockConfig, BedrockMiddleware
from .oauth import OAUTH_BETA, OAuthConfig, OAuthMiddleware, OAuthTokens
from .vertex import VERTEX_VERSION, VertexConfig, VertexMiddleware

__all__ = [
    "CloudAdapter",
    "BEDROCK_VERSION",
    "BedrockConfig",
    "BedrockMiddleware",
    "OAUTH_BETA",
    "OAuthConfig",
    "OAuthMiddleware",
    "OAuthTokens",
    "VERTEX_VERSION",
    "VertexConfig",
    "VertexMiddleware",
]
