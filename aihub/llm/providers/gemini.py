"""Gemini provider: Generative Language REST API (v1beta) over httpx."""

import logging
from typing import Any

import httpx

from aihub.llm.protocol import CompletionsParams, Message, Model, StreamChunk
from aihub.llm.providers.base import BaseProvider, TextCallback, emit, iter_sse_json

logger = logging.getLogger(__name__)

DEFAULT_API_HOST = "https://generativelanguage.googleapis.com"
API_VERSION = "v1beta"


def _usage(data: dict[str, Any]) -> dict[str, int] | None:
    meta = data.get("usageMetadata")
    if not meta or not isinstance(meta, dict):
        return None
    return {
        "prompt_tokens": int(meta.get("promptTokenCount", 0)),
        "completion_tokens": int(meta.get("candidatesTokenCount", 0)),
        "total_tokens": int(meta.get("totalTokenCount", 0)),
    }


class GeminiProvider(BaseProvider):
    """Gemini models. Images are not generated here."""

    provider_type = "gemini"

    @property
    def base_url(self) -> str:
        host = (self.config.api_host or DEFAULT_API_HOST).rstrip("/")
        return f"{host}/{API_VERSION}/"

    def _headers(self) -> dict[str, str]:
        headers = {
            "x-goog-api-key": self.config.api_key or "",
            "content-type": "application/json",
        }
        headers.update(self.config.default_headers)
        return headers

    @staticmethod
    def _model_path(model: Model) -> str:
        model_id = model.id
        return model_id if model_id.startswith("models/") else f"models/{model_id}"

    @staticmethod
    def _body(messages: list[Message], system: str | None) -> dict[str, Any]:
        system_parts = [system] if system else []
        system_parts.extend(m.content for m in messages if m.role == "system")
        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role == "assistant" else "user",
                    "parts": [{"text": m.content}],
                }
                for m in messages
                if m.role != "system"
            ]
        }
        if system_parts:
            body["systemInstruction"] = {"parts": [{"text": "\n\n".join(system_parts)}]}
        return body

    def _candidate_text(self, data: dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise self._error("malformed response")
        if not candidates:
            return ""
        content = self._expect_dict(self._expect_dict(candidates[0]).get("content") or {})
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            raise self._error("malformed response")
        return "".join(self._expect_dict(p).get("text") or "" for p in parts)

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.status_code in (401, 403):
            raise self._error("Invalid API key", status_code=resp.status_code)
        if resp.status_code >= 400:
            raise self._error(f"HTTP {resp.status_code}", status_code=resp.status_code)

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                resp = await client.post(self.base_url + path, headers=self._headers(), json=body)
                self._raise_for_status(resp)
                return self._expect_dict(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            raise self._error(str(e)) from e

    async def models(self) -> list[Model]:
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.get(self.base_url + "models", headers=self._headers())
                self._raise_for_status(resp)
                data = self._expect_dict(resp.json()).get("models") or []
        except (httpx.HTTPError, ValueError) as e:
            raise self._error(str(e)) from e
        if not isinstance(data, list):
            raise self._error("malformed response")
        result = []
        for m in data:
            if not isinstance(m, dict) or not m.get("name"):
                continue
            model_id = m["name"].removeprefix("models/")
            result.append(
                Model(
                    id=model_id,
                    provider=self.config.id,
                    name=m.get("displayName") or model_id,
                    group="gemini",
                )
            )
        return result

    async def _stream(
        self,
        model: Model,
        body: dict[str, Any],
        on_text: TextCallback,
        usage_out: list[dict[str, int]] | None = None,
    ) -> str:
        url = f"{self.base_url}{self._model_path(model)}:streamGenerateContent"
        parts: list[str] = []
        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                async with client.stream(
                    "POST", url, params={"alt": "sse"}, headers=self._headers(), json=body
                ) as resp:
                    if resp.status_code >= 400:
                        await resp.aread()
                    self._raise_for_status(resp)
                    async for data in iter_sse_json(resp):
                        if "error" in data:
                            err = self._expect_dict(data["error"] or {})
                            raise self._error(err.get("message") or "stream error")
                        text = self._candidate_text(data)
                        if text:
                            parts.append(text)
                            await emit(on_text, text)
                        usage = _usage(data)
                        if usage and usage_out is not None:
                            usage_out.append(usage)
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
        body = self._body(messages, system)
        if on_text is not None:
            return await self._stream(model, body, on_text)
        data = await self._post(f"{self._model_path(model)}:generateContent", body)
        return self._candidate_text(data)

    async def completions(self, params: CompletionsParams) -> None:
        model = params.assistant.model
        if model is None:
            raise self._error("completions requires assistant.model")
        body = self._body(params.messages, params.assistant.prompt or None)
        usages: list[dict[str, int]] = []

        async def on_text(text: str) -> None:
            await emit(params.on_chunk, StreamChunk(text=text))

        await self._stream(model, body, on_text, usage_out=usages)
        await emit(
            params.on_chunk,
            StreamChunk(usage=usages[-1] if usages else None, finished=True),
        )

    async def get_embedding_dimensions(self, model: Model) -> int:
        data = await self._post(
            f"{self._model_path(model)}:embedContent",
            {"content": {"parts": [{"text": "hi"}]}},
        )
        values = self._expect_dict(data.get("embedding") or {}).get("values")
        if not values or not isinstance(values, list):
            raise self._error(f"no embedding returned for model {model.id!r}")
        return len(values)
