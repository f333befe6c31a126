"""LLM adapters."""

from theme_newsletter.adapters.llm.claude_client import ClaudeAPIError, ClaudeContentGenerator

__all__ = ["ClaudeAPIError", "ClaudeContentGenerator"]
