"""Tests for OpenAICompatibleProvider and OpenAIProvider over mocked HTTP."""

import json

import pytest

from aihub.llm import (
    Assistant,
    CompletionsParams,
    GenerateImageParams,
    Message,
    Model,
    ProviderConfig,
    ProviderError,
    StreamChunk,
)
from aihub.llm.providers import OpenAICompatibleProvider, OpenAIProvider

BASE = "https://aihubmix.com/v1"
CONFIG = ProviderConfig(
    id="hub", type="openai_compatible", api_host="https://aihubmix.com", api_key="sk-o"
)


def _chat_completion(text: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "llama-70b",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
    }


def _chunk(text: str | None, usage: dict | None = None) -> dict:
    choices = [] if text is None else [{"index": 0, "delta": {"content": text}, "finish_reason": None}]
    data = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 0,
        "model": "llama-70b",
        "choices": choices,
    }
    if usage is not None:
        data["usage"] = usage
    return data


def _sse(*payloads: dict) -> bytes:
    body = "".join(f"data: {json.dumps(p)}\n\n" for p in payloads)
    return (body + "data: [DONE]\n\n").encode()


def _compatible() -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(CONFIG, default_model=lambda: Model(id="llama-70b"))


@pytest.mark.asyncio
async def test_models(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/models",
        json={
            "object": "list",
            "data": [{"id": "llama-70b", "object": "model", "created": 0, "owned_by": "meta"}],
        },
    )
    models = await _compatible().models()
    assert models == [Model(id="llama-70b", provider="hub", name="llama-70b", group="meta")]
    assert httpx_mock.get_request().headers["authorization"] == "Bearer sk-o"


@pytest.mark.asyncio
async def test_models_unauthorized(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/models",
        status_code=401,
        json={"error": {"message": "Invalid API key", "type": "invalid_request_error"}},
    )
    with pytest.raises(ProviderError) as exc_info:
        await _compatible().models()
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_generate_text(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/chat/completions", method="POST", json=_chat_completion("Paris")
    )
    assert await _compatible().generate_text("answer briefly", "capital of France?") == "Paris"
    body = json.loads(httpx_mock.get_request().content)
    assert body["model"] == "llama-70b"
    assert body["messages"][0] == {"role": "system", "content": "answer briefly"}


@pytest.mark.asyncio
async def test_completions_stream(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/chat/completions",
        method="POST",
        headers={"content-type": "text/event-stream"},
        content=_sse(
            _chunk("Hel"),
            _chunk("lo"),
            _chunk(None, usage={"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}),
        ),
    )
    chunks: list[StreamChunk] = []

    async def on_chunk(chunk: StreamChunk) -> None:
        chunks.append(chunk)

    params = CompletionsParams(
        messages=[Message("user", "hi")],
        assistant=Assistant(id="a", model=Model(id="llama-70b")),
        on_chunk=on_chunk,
    )
    await _compatible().completions(params)
    assert "".join(c.text for c in chunks) == "Hello"
    assert chunks[-1].finished is True
    assert chunks[-1].usage == {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
    body = json.loads(httpx_mock.get_request().content)
    assert body["stream"] is True


@pytest.mark.asyncio
async def test_generate_image(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/images/generations",
        method="POST",
        json={"created": 0, "data": [{"url": "https://img/1.png"}, {"b64_json": "aGk="}]},
    )
    images = await _compatible().generate_image(
        GenerateImageParams(model="flux", prompt="cat", batch_size=2)
    )
    assert images == ["https://img/1.png", "aGk="]
    body = json.loads(httpx_mock.get_request().content)
    assert body["n"] == 2
    assert body["size"] == "1024x1024"


@pytest.mark.asyncio
async def test_generate_image_by_chat_emits_markdown(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/images/generations",
        method="POST",
        json={"created": 0, "data": [{"url": "https://img/1.png"}]},
    )
    chunks: list[StreamChunk] = []
    params = CompletionsParams(
        messages=[Message("user", "a red fox")],
        assistant=Assistant(id="a", model=Model(id="flux")),
        on_chunk=chunks.append,
    )
    await _compatible().generate_image_by_chat(params)
    assert chunks == [StreamChunk(text="![image](https://img/1.png)", finished=True)]
    body = json.loads(httpx_mock.get_request().content)
    assert body["prompt"] == "a red fox"


@pytest.mark.asyncio
async def test_embedding_dimensions_probe(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/embeddings",
        method="POST",
        json={
            "object": "list",
            "model": "bge-m3",
            "data": [{"object": "embedding", "index": 0, "embedding": [0.0] * 1024}],
            "usage": {"prompt_tokens": 1, "total_tokens": 1},
        },
    )
    assert await _compatible().get_embedding_dimensions(Model(id="bge-m3")) == 1024


@pytest.mark.asyncio
async def test_openai_known_embedding_dimensions_skip_network() -> None:
    provider = OpenAIProvider(CONFIG, default_model=lambda: Model(id="gpt-4o"))
    assert await provider.get_embedding_dimensions(Model(id="text-embedding-3-large")) == 3072


@pytest.mark.asyncio
async def test_openai_responses_api_text(httpx_mock) -> None:
    httpx_mock.add_response(
        url=f"{BASE}/responses",
        method="POST",
        json={
            "id": "resp_1",
            "object": "response",
            "created_at": 0,
            "model": "gpt-4o",
            "status": "completed",
            "parallel_tool_calls": False,
            "tool_choice": "auto",
            "tools": [],
            "output": [
                {
                    "type": "message",
                    "id": "msg_1",
                    "role": "assistant",
                    "status": "completed",
                    "content": [{"type": "output_text", "text": "Hi!", "annotations": []}],
                }
            ],
        },
    )
    provider = OpenAIProvider(CONFIG, default_model=lambda: Model(id="gpt-4o"))
    assistant = Assistant(id="a", prompt="friendly", model=Model(id="gpt-4o"))
    assert await provider.translate("salut", assistant) == "Hi!"
    body = json.loads(httpx_mock.get_request().content)
    assert body["instructions"] == "friendly"
    assert body["input"] == [{"role": "user", "content": "salut"}]
