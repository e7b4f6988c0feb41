# LLM モジュール
# Claude Messages API クライアント

from src.llm.claude_client import (
    ClaudeClient,
    ClaudeClientError,
    ClaudeResponse,
    get_claude_client,
    reset_client,
)

__all__ = [
    "ClaudeClient",
    "ClaudeClientError",
    "ClaudeResponse",
    "get_claude_client",
    "reset_client",
]
