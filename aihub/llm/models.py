"""Model metadata: OpenAI-family classifier, default model lookup, known embedding sizes."""

import re
from typing import Any

from aihub.llm.protocol import Model

_OPENAI_LLM_RE = re.compile(r"(^|/)(gpt-|chatgpt|o1|o3|o4)", re.IGNORECASE)
_NON_CHAT_MARKERS = ("image", "embedding", "dall-e", "tts", "whisper", "audio", "realtime")

EMBEDDING_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


def is_openai_llm_model(model: Model) -> bool:
    """True for OpenAI chat and reasoning models (gpt-*, chatgpt-*, o1/o3/o4)."""
    model_id = model.id.lower()
    if any(marker in model_id for marker in _NON_CHAT_MARKERS):
        return False
    return bool(_OPENAI_LLM_RE.search(model_id))


def get_default_model(settings: dict[str, Any] | None = None) -> Model:
    """Return the configured default model (settings.default_model)."""
    if settings is None:
        from aihub.settings import load_settings

        settings = load_settings()
    data = settings.get("default_model") or {}
    model_id = str(data.get("id", ""))
    return Model(
        id=model_id,
        provider=str(data.get("provider", "")),
        name=str(data.get("name") or model_id),
        group=str(data.get("group", "")),
    )
