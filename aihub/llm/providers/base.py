"""Shared backend logic. Concrete providers implement the wire-level primitives."""

import inspect
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable

import httpx

from aihub.llm import prompts
from aihub.llm.errors import ProviderError
from aihub.llm.models import get_default_model
from aihub.llm.protocol import (
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

logger = logging.getLogger(__name__)

TextCallback = Callable[[str], Any]


def format_api_host(host: str) -> str:
    """Append the /v1/ API prefix unless the host already ends with '/'."""
    if host.endswith("/"):
        return host
    return f"{host}/v1/"


async def emit(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Invoke a plain or async callback."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


async def iter_sse_json(response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
    """Yield decoded JSON objects from a server-sent events response.

    Raises ValueError on a payload that is not a JSON object; callers wrap it
    into ProviderError like any other bad response.
    """
    async for line in response.aiter_lines():
        if not line.startswith("data:"):
            continue
        payload = line[len("data:"):].strip()
        if not payload or payload == "[DONE]":
            continue
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"malformed SSE payload: {payload[:200]!r}") from e
        if not isinstance(data, dict):
            raise ValueError(f"malformed SSE payload: {payload[:200]!r}")
        yield data


def last_user_text(messages: list[Message]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""


class BaseProvider(ABC):
    """Implements the text helpers of the uniform contract on top of `_chat`."""

    provider_type = "base"

    def __init__(
        self,
        config: ProviderConfig,
        default_model: Callable[[], Model] = get_default_model,
    ) -> None:
        self.config = config
        self._default_model = default_model

    def _error(self, message: str, status_code: int | None = None) -> ProviderError:
        return ProviderError(
            f"{self.provider_type}: {message}",
            provider=self.config.id,
            status_code=status_code,
        )

    def _expect_dict(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise self._error("malformed response")
        return data

    @abstractmethod
    async def _chat(
        self,
        model: Model,
        messages: list[Message],
        system: str | None = None,
        on_text: TextCallback | None = None,
    ) -> str:
        """Run one chat turn and return the full text. Streams deltas to on_text when given."""

    @abstractmethod
    async def models(self) -> list[Model]: ...

    @abstractmethod
    async def completions(self, params: CompletionsParams) -> None: ...

    @abstractmethod
    async def get_embedding_dimensions(self, model: Model) -> int: ...

    async def generate_text(self, prompt: str, content: str) -> str:
        model = self._default_model()
        return await self._chat(model, [Message("user", content)], system=prompt)

    async def generate_image(self, params: GenerateImageParams) -> list[str]:
        raise self._error("image generation is not supported")

    async def generate_image_by_chat(self, params: CompletionsParams) -> None:
        raise self._error("image generation by chat is not supported")

    async def translate(
        self,
        content: str,
        assistant: Assistant,
        on_partial: PartialCallback | None = None,
    ) -> str:
        model = assistant.model or self._default_model()
        messages = [Message("user", content)]
        if on_partial is None:
            return await self._chat(model, messages, system=assistant.prompt or None)

        parts: list[str] = []

        async def on_text(delta: str) -> None:
            parts.append(delta)
            await emit(on_partial, "".join(parts), False)

        text = await self._chat(
            model, messages, system=assistant.prompt or None, on_text=on_text
        )
        await emit(on_partial, text, True)
        return text

    async def summaries(self, messages: list[Message], assistant: Assistant) -> str:
        model = assistant.model or self._default_model()
        conversation = "\n".join(f"{m.role}: {m.content}" for m in messages[-5:])
        text = await self._chat(
            model, [Message("user", conversation)], system=prompts.SUMMARIZE_PROMPT
        )
        return text.strip().strip('"').strip()

    async def summary_for_search(
        self, messages: list[Message], assistant: Assistant
    ) -> str | None:
        model = assistant.model or self._default_model()
        question = last_user_text(messages)
        if not question:
            return None
        text = await self._chat(
            model,
            [Message("user", question)],
            system=assistant.prompt or prompts.SEARCH_SUMMARY_PROMPT,
        )
        text = text.strip()
        if not text or text == prompts.NO_SEARCH_MARKER:
            return None
        return text

    async def suggestions(
        self, messages: list[Message], assistant: Assistant
    ) -> list[Suggestion]:
        model = assistant.model or self._default_model()
        history = [m for m in messages if m.role in ("user", "assistant")][-6:]
        if not history:
            return []
        text = await self._chat(model, history, system=prompts.SUGGESTIONS_PROMPT)
        lines = [line.strip().lstrip("-*0123456789. ").strip() for line in text.splitlines()]
        return [Suggestion(content=line) for line in lines if line][:3]

    async def check(self, model: Model, stream: bool = False) -> CheckResult:
        messages = [Message("user", "hi")]
        try:
            if stream:
                received: list[str] = []
                text = await self._chat(model, messages, on_text=received.append)
                if not received and not text:
                    raise self._error(f"empty stream from model {model.id!r}")
            else:
                text = await self._chat(model, messages)
                if not text:
                    raise self._error(f"empty response from model {model.id!r}")
            return CheckResult(valid=True)
        except Exception as e:
            logger.debug("check %s/%s failed: %s", self.config.id, model.id, e)
            return CheckResult(valid=False, error=e)
