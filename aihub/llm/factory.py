"""Build providers from settings entries (config/settings.yaml `providers` block)."""

import logging
from typing import Any, Callable

from aihub.llm.errors import ConfigurationError
from aihub.llm.models import get_default_model
from aihub.llm.protocol import AiProvider, Model, ProviderConfig
from aihub.llm.providers import (
    AnthropicProvider,
    GeminiProvider,
    OpenAICompatibleProvider,
    OpenAIProvider,
)
from aihub.llm.router import ModelRouter

logger = logging.getLogger(__name__)

_PROVIDER_TYPES: dict[str, type] = {
    "openai_compatible": OpenAICompatibleProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
    "aihubmix": ModelRouter,
}


def provider_types() -> list[str]:
    return sorted(_PROVIDER_TYPES)


def _resolve_key(
    data: dict[str, Any], secrets_getter: Callable[[str], str | None]
) -> str | None:
    if data.get("api_key_literal"):
        return str(data["api_key_literal"])
    if data.get("api_key_secret"):
        return secrets_getter(str(data["api_key_secret"]))
    return None


def dict_to_provider_config(
    provider_id: str,
    data: dict[str, Any],
    secrets_getter: Callable[[str], str | None],
) -> ProviderConfig:
    return ProviderConfig(
        id=provider_id,
        type=str(data.get("type", "openai_compatible")),
        api_host=data.get("api_host"),
        api_key=_resolve_key(data, secrets_getter),
        default_headers=dict(data.get("default_headers") or {}),
        extra=dict(data.get("extra") or {}),
    )


def create_provider(
    config: ProviderConfig,
    default_model: Callable[[], Model] = get_default_model,
) -> AiProvider:
    """Instantiate the provider class registered for config.type."""
    cls = _PROVIDER_TYPES.get(config.type)
    if cls is None:
        raise ConfigurationError(
            f"Unknown provider type {config.type!r} for provider id {config.id!r}. "
            f"Must be one of: {', '.join(provider_types())}"
        )
    logger.debug("Creating %s provider %r", config.type, config.id)
    return cls(config, default_model=default_model)


def provider_from_settings(
    provider_id: str,
    settings: dict[str, Any],
    secrets_getter: Callable[[str], str | None],
) -> AiProvider:
    """Look up providers.<provider_id> in settings and build it."""
    data = (settings.get("providers") or {}).get(provider_id)
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Unknown provider {provider_id!r}: not found in config/settings.yaml"
        )

    def default_model() -> Model:
        return get_default_model(settings)

    config = dict_to_provider_config(provider_id, data, secrets_getter)
    return create_provider(config, default_model=default_model)
