"""OpenAI-compatible providers (OpenRouter, aggregators, local servers). Chat Completions API."""

import logging

import openai
from openai import AsyncOpenAI

from aihub.llm.errors import ProviderError
from aihub.llm.protocol import (
    CompletionsParams,
    GenerateImageParams,
    Message,
    Model,
    ProviderConfig,
    StreamChunk,
)
from aihub.llm.providers.base import (
    BaseProvider,
    TextCallback,
    emit,
    format_api_host,
    last_user_text,
)

logger = logging.getLogger(__name__)

DEFAULT_API_HOST = "https://api.openai.com"


def _image_src(value: str) -> str:
    if value.startswith(("http://", "https://", "data:")):
        return value
    return f"data:image/png;base64,{value}"


class OpenAICompatibleProvider(BaseProvider):
    """Uses the Chat Completions API, which every OpenAI-compatible server exposes."""

    provider_type = "openai_compatible"

    def __init__(self, config: ProviderConfig, **kwargs) -> None:
        super().__init__(config, **kwargs)
        self.client = AsyncOpenAI(
            base_url=format_api_host(config.api_host or DEFAULT_API_HOST),
            api_key=config.api_key or "not-required",
            default_headers=dict(config.default_headers) or None,
            timeout=60.0,
        )

    def _wrap(self, e: openai.OpenAIError) -> ProviderError:
        return self._error(str(e), status_code=getattr(e, "status_code", None))

    @staticmethod
    def _to_openai_messages(
        messages: list[Message], system: str | None
    ) -> list[dict[str, str]]:
        result = [{"role": "system", "content": system}] if system else []
        result.extend({"role": m.role, "content": m.content} for m in messages)
        return result

    async def models(self) -> list[Model]:
        try:
            page = await self.client.models.list()
        except openai.OpenAIError as e:
            raise self._wrap(e) from e
        return [
            Model(
                id=m.id,
                provider=self.config.id,
                name=m.id,
                group=getattr(m, "owned_by", "") or "",
            )
            for m in page.data
        ]

    async def _chat(
        self,
        model: Model,
        messages: list[Message],
        system: str | None = None,
        on_text: TextCallback | None = None,
    ) -> str:
        payload = self._to_openai_messages(messages, system)
        try:
            if on_text is None:
                resp = await self.client.chat.completions.create(
                    model=model.id, messages=payload
                )
                if not resp.choices:
                    return ""
                return resp.choices[0].message.content or ""
            parts: list[str] = []
            stream = await self.client.chat.completions.create(
                model=model.id, messages=payload, stream=True
            )
            async for chunk in stream:
                delta = chunk.choices[0].delta.content if chunk.choices else None
                if delta:
                    parts.append(delta)
                    await emit(on_text, delta)
            return "".join(parts)
        except openai.OpenAIError as e:
            raise self._wrap(e) from e

    async def completions(self, params: CompletionsParams) -> None:
        model = params.assistant.model
        if model is None:
            raise self._error("completions requires assistant.model")
        payload = self._to_openai_messages(params.messages, params.assistant.prompt or None)
        usage: dict[str, int] | None = None
        try:
            stream = await self.client.chat.completions.create(
                model=model.id,
                messages=payload,
                stream=True,
                stream_options={"include_usage": True},
            )
            async for chunk in stream:
                if chunk.usage is not None:
                    usage = {
                        "prompt_tokens": chunk.usage.prompt_tokens,
                        "completion_tokens": chunk.usage.completion_tokens,
                        "total_tokens": chunk.usage.total_tokens,
                    }
                delta = chunk.choices[0].delta.content if chunk.choices else None
                if delta:
                    await emit(params.on_chunk, StreamChunk(text=delta))
        except openai.OpenAIError as e:
            raise self._wrap(e) from e
        await emit(params.on_chunk, StreamChunk(usage=usage, finished=True))

    async def generate_image(self, params: GenerateImageParams) -> list[str]:
        kwargs: dict = {
            "model": params.model,
            "prompt": params.prompt,
            "size": params.image_size,
            "n": params.batch_size,
        }
        try:
            resp = await self.client.images.generate(**kwargs)
        except openai.OpenAIError as e:
            raise self._wrap(e) from e
        return [d.url or d.b64_json for d in resp.data or [] if d.url or d.b64_json]

    async def generate_image_by_chat(self, params: CompletionsParams) -> None:
        model = params.assistant.model
        if model is None:
            raise self._error("image generation requires assistant.model")
        prompt = last_user_text(params.messages)
        images = await self.generate_image(GenerateImageParams(model=model.id, prompt=prompt))
        text = "\n\n".join(f"![image]({_image_src(src)})" for src in images)
        await emit(params.on_chunk, StreamChunk(text=text, finished=True))

    async def get_embedding_dimensions(self, model: Model) -> int:
        try:
            resp = await self.client.embeddings.create(
                model=model.id, input=["hi"], encoding_format="float"
            )
        except openai.OpenAIError as e:
            raise self._wrap(e) from e
        if not resp.data:
            raise self._error(f"no embedding returned for model {model.id!r}")
        return len(resp.data[0].embedding)
