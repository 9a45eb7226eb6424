"""
Inference client used by the AI-backed discovery stages.
"""

from .client import (
    AnalysisResponse,
    ClaudeClient,
    TokenUsage,
    create_claude_client,
    parse_json_response,
)

__all__ = [
    "AnalysisResponse",
    "ClaudeClient",
    "TokenUsage",
    "create_claude_client",
    "parse_json_response",
]
