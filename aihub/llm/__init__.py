"""Multi-backend LLM access: uniform provider contract and model-aware routing."""

from aihub.llm.errors import ConfigurationError, ProviderError
from aihub.llm.factory import create_provider, provider_from_settings
from aihub.llm.protocol import (
    AiProvider,
    Assistant,
    CheckResult,
    CompletionsParams,
    GenerateImageParams,
    Message,
    Model,
    ProviderConfig,
    StreamChunk,
    Suggestion,
)
from aihub.llm.router import BackendKey, ModelRouter, select_backend

__all__ = [
    "AiProvider",
    "Assistant",
    "BackendKey",
    "CheckResult",
    "CompletionsParams",
    "ConfigurationError",
    "GenerateImageParams",
    "Message",
    "Model",
    "ModelRouter",
    "ProviderConfig",
    "ProviderError",
    "StreamChunk",
    "Suggestion",
    "create_provider",
    "provider_from_settings",
    "select_backend",
]
