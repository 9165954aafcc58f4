"""
anthropic-client - Beta Features

Known ``anthropic-beta`` flag values, and the ``client.beta`` namespace.

Usage:
    messages = client.beta.messages.with_betas([PROMPT_CACHING_2024_07_31])
    message = await messages.create(model="claude-sonnet-4-6", max_tokens=256, messages=[...])
"""

from typing import Any

from .messages import Messages


MESSAGE_BATCHES_2024_09_24 = "message-batches-2024-09-24"
PROMPT_CACHING_2024_07_31 = "prompt-caching-2024-07-31"
COMPUTER_USE_2024_10_22 = "computer-use-2024-10-22"
COMPUTER_USE_2025_01_24 = "computer-use-2025-01-24"
PDFS_2024_09_25 = "pdfs-2024-09-25"
TOKEN_COUNTING_2024_11_01 = "token-counting-2024-11-01"
TOKEN_EFFICIENT_TOOLS_2025_02_19 = "token-efficient-tools-2025-02-19"
OUTPUT_128K_2025_02_19 = "output-128k-2025-02-19"
FILES_API_2025_04_14 = "files-api-2025-04-14"
MCP_CLIENT_2025_04_04 = "mcp-client-2025-04-04"
MCP_CLIENT_2025_11_20 = "mcp-client-2025-11-20"
DEV_FULL_THINKING_2025_05_14 = "dev-full-thinking-2025-05-14"
INTERLEAVED_THINKING_2025_05_14 = "interleaved-thinking-2025-05-14"
CODE_EXECUTION_2025_05_22 = "code-execution-2025-05-22"
EXTENDED_CACHE_TTL_2025_04_11 = "extended-cache-ttl-2025-04-11"
ADAPTIVE_THINKING_2026_01_28 = "adaptive-thinking-2026-01-28"
CLAUDE_CODE_20250219 = "claude-code-20250219"
EFFORT_2025_11_24 = "effort-2025-11-24"
OAUTH_2025_04_20 = "oauth-2025-04-20"
PROMPT_CACHING_SCOPE_2026_01_05 = "prompt-caching-scope-2026-01-05"


class Beta:
    """Entry point for beta-flagged calls; ``messages`` carries no flags until ``with_betas``."""

    def __init__(self, client: Any):
        self.messages = Messages(client)
