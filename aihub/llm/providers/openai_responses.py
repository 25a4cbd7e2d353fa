"""OpenAI provider. Uses the Responses API for text; images and embeddings as in the compatible provider."""

import logging

import openai

from aihub.llm.models import EMBEDDING_DIMENSIONS
from aihub.llm.protocol import CompletionsParams, Message, Model, StreamChunk
from aihub.llm.providers.base import TextCallback, emit
from aihub.llm.providers.openai_compatible import OpenAICompatibleProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI Responses API (reasoning models, hosted tools)."""

    provider_type = "openai"

    @staticmethod
    def _to_input(messages: list[Message]) -> list[dict[str, str]]:
        return [
            {"role": m.role, "content": m.content}
            for m in messages
            if m.role != "system"
        ]

    @staticmethod
    def _instructions(messages: list[Message], system: str | None) -> str | None:
        parts = [system] if system else []
        parts.extend(m.content for m in messages if m.role == "system")
        return "\n\n".join(parts) or None

    async def _chat(
        self,
        model: Model,
        messages: list[Message],
        system: str | None = None,
        on_text: TextCallback | None = None,
    ) -> str:
        kwargs: dict = {
            "model": model.id,
            "input": self._to_input(messages),
        }
        instructions = self._instructions(messages, system)
        if instructions:
            kwargs["instructions"] = instructions
        try:
            if on_text is None:
                resp = await self.client.responses.create(**kwargs)
                return resp.output_text or ""
            parts: list[str] = []
            stream = await self.client.responses.create(stream=True, **kwargs)
            async for event in stream:
                if event.type == "response.output_text.delta" and event.delta:
                    parts.append(event.delta)
                    await emit(on_text, event.delta)
            return "".join(parts)
        except openai.OpenAIError as e:
            raise self._wrap(e) from e

    async def completions(self, params: CompletionsParams) -> None:
        model = params.assistant.model
        if model is None:
            raise self._error("completions requires assistant.model")
        kwargs: dict = {
            "model": model.id,
            "input": self._to_input(params.messages),
            "stream": True,
        }
        instructions = self._instructions(params.messages, params.assistant.prompt or None)
        if instructions:
            kwargs["instructions"] = instructions
        usage: dict[str, int] | None = None
        try:
            stream = await self.client.responses.create(**kwargs)
            async for event in stream:
                if event.type == "response.output_text.delta" and event.delta:
                    await emit(params.on_chunk, StreamChunk(text=event.delta))
                elif event.type == "response.completed" and event.response.usage:
                    u = event.response.usage
                    usage = {
                        "prompt_tokens": u.input_tokens,
                        "completion_tokens": u.output_tokens,
                        "total_tokens": u.total_tokens,
                    }
                elif event.type in ("response.failed", "error"):
                    raise self._error(f"stream failed for model {model.id!r}")
        except openai.OpenAIError as e:
            raise self._wrap(e) from e
        await emit(params.on_chunk, StreamChunk(usage=usage, finished=True))

    async def get_embedding_dimensions(self, model: Model) -> int:
        known = EMBEDDING_DIMENSIONS.get(model.id.lower())
        if known is not None:
            return known
        return await super().get_embedding_dimensions(model)
