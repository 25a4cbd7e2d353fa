"""Built-in backend providers."""

from aihub.llm.providers.anthropic import AnthropicProvider
from aihub.llm.providers.base import BaseProvider
from aihub.llm.providers.gemini import GeminiProvider
from aihub.llm.providers.openai_compatible import OpenAICompatibleProvider
from aihub.llm.providers.openai_responses import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "OpenAIProvider",
]
