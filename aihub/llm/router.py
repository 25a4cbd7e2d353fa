"""ModelRouter: one AiProvider façade that routes each call to a vendor backend by model id."""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Callable, Iterator, Mapping

from aihub.llm.errors import ConfigurationError
from aihub.llm.models import get_default_model, is_openai_llm_model
from aihub.llm.protocol import (
    AiProvider,
    Assistant,
    CheckResult,
    CompletionsParams,
    GenerateImageParams,
    Message,
    Model,
    PartialCallback,
    ProviderConfig,
    Suggestion,
)
from aihub.llm.providers import (
    AnthropicProvider,
    GeminiProvider,
    OpenAICompatibleProvider,
    OpenAIProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_API_HOST = "https://aihubmix.com/gemini"

# Model resolved by the router for the call in progress. Backends read it
# through the resolver they were built with, so an assistant without a model
# is served with the same default the router routed on.
_call_model: ContextVar[Model | None] = ContextVar("aihub_call_model", default=None)


class BackendKey(str, Enum):
    CLAUDE = "claude"
    GEMINI = "gemini"
    OPENAI = "openai"
    DEFAULT = "default"


FALLBACK_KEY = BackendKey.DEFAULT


class Routing(str, Enum):
    BY_MODEL = "by_model"
    FALLBACK = "fallback"


# Text and image generation are served only by the fallback backend; they are
# not routed by model even when the caller's model would select another vendor.
ROUTING_POLICY: Mapping[str, Routing] = MappingProxyType(
    {
        "models": Routing.FALLBACK,
        "generate_text": Routing.FALLBACK,
        "generate_image": Routing.FALLBACK,
        "generate_image_by_chat": Routing.FALLBACK,
        "completions": Routing.BY_MODEL,
        "translate": Routing.BY_MODEL,
        "summaries": Routing.BY_MODEL,
        "summary_for_search": Routing.BY_MODEL,
        "suggestions": Routing.BY_MODEL,
        "check": Routing.BY_MODEL,
        "get_embedding_dimensions": Routing.BY_MODEL,
    }
)


class ModelSource(str, Enum):
    ASSISTANT = "assistant"
    DEFAULT = "default"


@dataclass(frozen=True)
class ResolvedModel:
    model: Model
    source: ModelSource


def resolve_model(
    assistant: Assistant, default_model: Callable[[], Model]
) -> ResolvedModel:
    """Use the assistant's model, else ask the default resolver (once)."""
    if assistant.model is not None:
        return ResolvedModel(assistant.model, ModelSource.ASSISTANT)
    return ResolvedModel(default_model(), ModelSource.DEFAULT)


@contextmanager
def pinned_model(model: Model) -> Iterator[None]:
    """Make `model` the default for everything awaited inside the block."""
    token = _call_model.set(model)
    try:
        yield
    finally:
        _call_model.reset(token)


def call_default_model(default_model: Callable[[], Model]) -> Callable[[], Model]:
    """Wrap a resolver so it returns the model pinned for the current call, if any."""

    def resolve() -> Model:
        pinned = _call_model.get()
        return pinned if pinned is not None else default_model()

    return resolve


def select_backend(
    model: Model,
    is_openai_llm: Callable[[Model], bool] = is_openai_llm_model,
) -> BackendKey:
    """Pick the backend for a model. Substring checks run first; the classifier only if both miss."""
    model_id = model.id.lower()
    if "claude" in model_id:
        return BackendKey.CLAUDE
    if "gemini" in model_id:
        return BackendKey.GEMINI
    if is_openai_llm(model):
        return BackendKey.OPENAI
    return FALLBACK_KEY


def build_backends(
    config: ProviderConfig, default_model: Callable[[], Model]
) -> dict[BackendKey, AiProvider]:
    """One backend per key, all sharing the caller's config; Gemini gets its own host.

    Backends resolve defaults through `call_default_model`, so inside a routed
    call they see the model the router picked.
    """
    default_model = call_default_model(default_model)
    gemini_host = config.extra.get("gemini_api_host") or DEFAULT_GEMINI_API_HOST
    return {
        BackendKey.CLAUDE: AnthropicProvider(config, default_model=default_model),
        BackendKey.GEMINI: GeminiProvider(
            replace(config, api_host=gemini_host), default_model=default_model
        ),
        BackendKey.OPENAI: OpenAIProvider(config, default_model=default_model),
        BackendKey.DEFAULT: OpenAICompatibleProvider(config, default_model=default_model),
    }


class ModelRouter:
    """Routes every AiProvider operation to the backend that serves the requested model.

    The registry is built once and never changes. The router does not touch
    inputs, outputs or errors: whatever the backend returns or raises reaches
    the caller as is.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        is_openai_llm: Callable[[Model], bool] = is_openai_llm_model,
        default_model: Callable[[], Model] = get_default_model,
        backends: Mapping[BackendKey, AiProvider] | None = None,
    ) -> None:
        self.config = config
        self._is_openai_llm = is_openai_llm
        self._default_model = default_model
        registry = dict(backends) if backends is not None else build_backends(
            config, default_model
        )
        missing = [key.value for key in BackendKey if key not in registry]
        if missing:
            raise ConfigurationError(f"Backend registry is missing keys: {missing}")
        self._registry: Mapping[BackendKey, AiProvider] = MappingProxyType(registry)

    @property
    def registry(self) -> Mapping[BackendKey, AiProvider]:
        return self._registry

    def provider_for(self, key: BackendKey) -> AiProvider:
        return self._registry[key]

    def select(self, model: Model) -> BackendKey:
        return select_backend(model, self._is_openai_llm)

    def _backend(self, operation: str, model: Model | None = None) -> AiProvider:
        if ROUTING_POLICY[operation] is Routing.FALLBACK:
            key = FALLBACK_KEY
        else:
            if model is None:
                raise ConfigurationError(f"{operation} requires a model")
            key = self.select(model)
        logger.debug(
            "%s: %s -> %s", operation, model.id if model else "-", key.value
        )
        return self._registry[key]

    @contextmanager
    def _backend_for_assistant(
        self, operation: str, assistant: Assistant
    ) -> Iterator[AiProvider]:
        resolved = resolve_model(assistant, self._default_model)
        backend = self._backend(operation, resolved.model)
        with pinned_model(resolved.model):
            yield backend

    async def models(self) -> list[Model]:
        return await self._backend("models").models()

    async def generate_text(self, prompt: str, content: str) -> str:
        return await self._backend("generate_text").generate_text(prompt, content)

    async def generate_image(self, params: GenerateImageParams) -> list[str]:
        return await self._backend("generate_image").generate_image(params)

    async def generate_image_by_chat(self, params: CompletionsParams) -> None:
        return await self._backend("generate_image_by_chat").generate_image_by_chat(params)

    async def completions(self, params: CompletionsParams) -> None:
        backend = self._backend("completions", params.assistant.model)
        return await backend.completions(params)

    async def translate(
        self,
        content: str,
        assistant: Assistant,
        on_partial: PartialCallback | None = None,
    ) -> str:
        with self._backend_for_assistant("translate", assistant) as backend:
            return await backend.translate(content, assistant, on_partial)

    async def summaries(self, messages: list[Message], assistant: Assistant) -> str:
        with self._backend_for_assistant("summaries", assistant) as backend:
            return await backend.summaries(messages, assistant)

    async def summary_for_search(
        self, messages: list[Message], assistant: Assistant
    ) -> str | None:
        with self._backend_for_assistant("summary_for_search", assistant) as backend:
            return await backend.summary_for_search(messages, assistant)

    async def suggestions(
        self, messages: list[Message], assistant: Assistant
    ) -> list[Suggestion]:
        with self._backend_for_assistant("suggestions", assistant) as backend:
            return await backend.suggestions(messages, assistant)

    async def check(self, model: Model, stream: bool = False) -> CheckResult:
        return await self._backend("check", model).check(model, stream)

    async def get_embedding_dimensions(self, model: Model) -> int:
        backend = self._backend("get_embedding_dimensions", model)
        return await backend.get_embedding_dimensions(model)
