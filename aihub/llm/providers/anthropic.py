"""Anthropic provider: Messages API over httpx."""

import logging
from typing import Any

import httpx

from aihub.llm.protocol import CompletionsParams, Message, Model, StreamChunk
from aihub.llm.providers.base import (
    BaseProvider,
    TextCallback,
    emit,
    format_api_host,
    iter_sse_json,
)

logger = logging.getLogger(__name__)

DEFAULT_API_HOST = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider(BaseProvider):
    """Claude models via /v1/messages. Anthropic has no embedding or image endpoints."""

    provider_type = "anthropic"

    @property
    def base_url(self) -> str:
        return format_api_host(self.config.api_host or DEFAULT_API_HOST)

    def _headers(self) -> dict[str, str]:
        headers = {
            "x-api-key": self.config.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        headers.update(self.config.default_headers)
        return headers

    def _body(
        self, model: Model, messages: list[Message], system: str | None, stream: bool
    ) -> dict[str, Any]:
        system_parts = [system] if system else []
        system_parts.extend(m.content for m in messages if m.role == "system")
        body: dict[str, Any] = {
            "model": model.id,
            "max_tokens": int(self.config.extra.get("max_tokens", DEFAULT_MAX_TOKENS)),
            "messages": [
                {"role": m.role, "content": m.content}
                for m in messages
                if m.role != "system"
            ],
        }
        if system_parts:
            body["system"] = "\n\n".join(system_parts)
        if stream:
            body["stream"] = True
        return body

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.status_code == 401:
            raise self._error("Invalid API key", status_code=401)
        if resp.status_code >= 400:
            raise self._error(f"HTTP {resp.status_code}", status_code=resp.status_code)

    async def models(self) -> list[Model]:
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.get(self.base_url + "models", headers=self._headers())
                self._raise_for_status(resp)
                data = self._expect_dict(resp.json()).get("data") or []
        except (httpx.HTTPError, ValueError) as e:
            raise self._error(str(e)) from e
        if not isinstance(data, list):
            raise self._error("malformed response")
        return [
            Model(
                id=m["id"],
                provider=self.config.id,
                name=m.get("display_name") or m["id"],
                group="claude",
            )
            for m in data
            if isinstance(m, dict) and m.get("id")
        ]

    async def _stream(
        self,
        body: dict[str, Any],
        on_text: TextCallback,
        usage: dict[str, int] | None = None,
    ) -> str:
        parts: list[str] = []
        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                async with client.stream(
                    "POST", self.base_url + "messages", headers=self._headers(), json=body
                ) as resp:
                    if resp.status_code >= 400:
                        await resp.aread()
                    self._raise_for_status(resp)
                    async for event in iter_sse_json(resp):
                        etype = event.get("type")
                        if etype == "content_block_delta":
                            delta = self._expect_dict(event.get("delta") or {})
                            text = delta.get("text")
                            if text:
                                parts.append(text)
                                await emit(on_text, text)
                        elif etype == "message_start" and usage is not None:
                            message = self._expect_dict(event.get("message") or {})
                            start = self._expect_dict(message.get("usage") or {})
                            usage["prompt_tokens"] = int(start.get("input_tokens", 0))
                        elif etype == "message_delta" and usage is not None:
                            delta_usage = self._expect_dict(event.get("usage") or {})
                            usage["completion_tokens"] = int(
                                delta_usage.get("output_tokens", 0)
                            )
                        elif etype == "error":
                            err = self._expect_dict(event.get("error") or {})
                            raise self._error(err.get("message") or "stream error")
        except (httpx.HTTPError, ValueError) as e:
            raise self._error(str(e)) from e
        return "".join(parts)

    async def _chat(
        self,
        model: Model,
        messages: list[Message],
        system: str | None = None,
        on_text: TextCallback | None = None,
    ) -> str:
        if on_text is not None:
            body = self._body(model, messages, system, stream=True)
            return await self._stream(body, on_text)
        body = self._body(model, messages, system, stream=False)
        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                resp = await client.post(
                    self.base_url + "messages", headers=self._headers(), json=body
                )
                self._raise_for_status(resp)
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise self._error(str(e)) from e
        content = self._expect_dict(data).get("content") or []
        if not isinstance(content, list):
            raise self._error("malformed response")
        parts = []
        for block in content:
            if not isinstance(block, dict):
                raise self._error("malformed response")
            if block.get("type") == "text":
                parts.append(block.get("text") or "")
        return "".join(parts)

    async def completions(self, params: CompletionsParams) -> None:
        model = params.assistant.model
        if model is None:
            raise self._error("completions requires assistant.model")
        body = self._body(model, params.messages, params.assistant.prompt or None, stream=True)
        usage: dict[str, int] = {}

        async def on_text(text: str) -> None:
            await emit(params.on_chunk, StreamChunk(text=text))

        await self._stream(body, on_text, usage=usage)
        if usage:
            usage["total_tokens"] = usage.get("prompt_tokens", 0) + usage.get(
                "completion_tokens", 0
            )
        await emit(params.on_chunk, StreamChunk(usage=usage or None, finished=True))

    async def get_embedding_dimensions(self, model: Model) -> int:
        raise self._error(f"no embedding models available (requested {model.id!r})")
