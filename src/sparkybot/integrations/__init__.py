"""Integrations module - External service integrations."""

from sparkybot.integrations.llm_provider import LLMProvider

__all__ = ["LLMProvider"]
