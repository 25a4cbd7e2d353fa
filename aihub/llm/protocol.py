"""LLM provider protocol and request/response dataclasses.

Every backend provider and the ModelRouter implement AiProvider, so callers
can swap one for another without changing code.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Protocol, runtime_checkable


@dataclass(frozen=True)
class Model:
    """Logical model reference. `id` is the routing key (compared case-insensitively)."""

    id: str
    provider: str = ""
    name: str = ""
    group: str = ""


@dataclass
class Assistant:
    """Assistant configuration: system prompt plus an optional pinned model."""

    id: str
    name: str = ""
    prompt: str = ""
    model: Model | None = None
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class Message:
    role: str  # system | user | assistant
    content: str


@dataclass
class Suggestion:
    content: str


@dataclass
class StreamChunk:
    """One streamed fragment. The last chunk of a completion has finished=True."""

    text: str = ""
    usage: dict[str, int] | None = None
    finished: bool = False


ChunkCallback = Callable[[StreamChunk], Awaitable[None] | None]
PartialCallback = Callable[[str, bool], Awaitable[None] | None]


@dataclass
class CompletionsParams:
    messages: list[Message]
    assistant: Assistant
    on_chunk: ChunkCallback


@dataclass
class GenerateImageParams:
    model: str
    prompt: str
    image_size: str = "1024x1024"
    batch_size: int = 1
    negative_prompt: str = ""
    seed: int | None = None


@dataclass
class CheckResult:
    valid: bool
    error: Exception | None = None


@dataclass(frozen=True)
class ProviderConfig:
    """How to reach a vendor API. Immutable; derived configs are built with dataclasses.replace."""

    id: str
    type: str  # openai_compatible | openai | anthropic | gemini | aihubmix
    api_host: str | None = None
    api_key: str | None = None
    default_headers: Mapping[str, str] = field(default_factory=dict)
    # Per-vendor overrides, e.g. {"gemini_api_host": "https://..."}
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Own read-only copies, so configs derived with replace() share no mutable state.
        object.__setattr__(self, "default_headers", MappingProxyType(dict(self.default_headers)))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))


@runtime_checkable
class AiProvider(Protocol):
    """Uniform contract implemented by every backend and by ModelRouter."""

    async def models(self) -> list[Model]: ...

    async def generate_text(self, prompt: str, content: str) -> str: ...

    async def generate_image(self, params: GenerateImageParams) -> list[str]: ...

    async def generate_image_by_chat(self, params: CompletionsParams) -> None: ...

    async def completions(self, params: CompletionsParams) -> None: ...

    async def translate(
        self,
        content: str,
        assistant: Assistant,
        on_partial: PartialCallback | None = None,
    ) -> str: ...

    async def summaries(self, messages: list[Message], assistant: Assistant) -> str: ...

    async def summary_for_search(
        self, messages: list[Message], assistant: Assistant
    ) -> str | None: ...

    async def suggestions(
        self, messages: list[Message], assistant: Assistant
    ) -> list[Suggestion]: ...

    async def check(self, model: Model, stream: bool = False) -> CheckResult:
        """Probe the model. Never raises: failures land in CheckResult.error."""
        ...

    async def get_embedding_dimensions(self, model: Model) -> int: ...
