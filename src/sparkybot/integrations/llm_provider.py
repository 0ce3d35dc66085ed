"""
LLM Provider - chat model used for AI intent routing and general replies.

Priority when `provider` is "auto":
1. Gemini (GEMINI_API_KEY / GOOGLE_API_KEY)
2. OpenAI (OPENAI_API_KEY)
3. Anthropic (ANTHROPIC_API_KEY)
"""

import os
from typing import Any, Dict, List, Optional

from loguru import logger

DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-20241022",
}


class LLMProvider:
    """Unified access to one LangChain chat model."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self._llm = None
        self._provider_name = "none"

    def _key(self, provider: str) -> Optional[str]:
        if provider == "gemini":
            return (
                os.environ.get("GEMINI_API_KEY")
                or os.environ.get("GOOGLE_API_KEY")
                or self.config.get("gemini_api_key")
            )
        if provider == "openai":
            return os.environ.get("OPENAI_API_KEY") or self.config.get("openai_api_key")
        if provider == "anthropic":
            return os.environ.get("ANTHROPIC_API_KEY") or self.config.get("anthropic_api_key")
        return None

    def _model_name(self, provider: str) -> str:
        # llm.model only applies to an explicitly chosen provider
        wanted = str(self.config.get("provider") or "auto").lower()
        if wanted == provider and self.config.get("model"):
            return self.config["model"]
        return DEFAULT_MODELS[provider]

    def _build(self, provider: str, api_key: str) -> Any:
        temperature = self.config.get("temperature", 0.1)
        if provider == "gemini":
            from langchain_google_genai import ChatGoogleGenerativeAI

            return ChatGoogleGenerativeAI(
                model=self._model_name(provider),
                google_api_key=api_key,
                temperature=temperature,
            )
        if provider == "openai":
            from langchain_openai import ChatOpenAI

            return ChatOpenAI(
                model=self._model_name(provider),
                api_key=api_key,
                temperature=temperature,
            )
        if provider == "anthropic":
            from langchain_anthropic import ChatAnthropic

            return ChatAnthropic(
                model=self._model_name(provider),
                api_key=api_key,
                temperature=temperature,
            )
        raise ValueError(f"unknown LLM provider: {provider}")

    async def initialize(self) -> bool:
        """Initialize the configured (or first available) provider."""
        wanted = str(self.config.get("provider") or "auto").lower()
        candidates = list(DEFAULT_MODELS) if wanted == "auto" else [wanted]

        for provider in candidates:
            api_key = self._key(provider)
            if not api_key:
                continue
            try:
                self._llm = self._build(provider, api_key)
                self._provider_name = provider
                logger.info(f"Using {provider} as LLM provider ({self._model_name(provider)})")
                return True
            except Exception as e:
                logger.warning(f"{provider} initialization failed: {e}")

        logger.warning("No LLM provider available; AI routing disabled")
        return False

    @property
    def llm(self):
        """Get the underlying LangChain chat model."""
        return self._llm

    @property
    def provider(self) -> str:
        return self._provider_name

    @property
    def available_providers(self) -> List[str]:
        return [p for p in DEFAULT_MODELS if self._key(p)]

    async def invoke(self, prompt: str, **kwargs) -> str:
        """Single prompt in, text completion out."""
        if not self._llm:
            raise RuntimeError("LLM not initialized")

        response = await self._llm.ainvoke(prompt, **kwargs)

        if hasattr(response, "content"):
            return response.content
        return str(response)
