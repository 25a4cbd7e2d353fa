"""aihub: one provider façade over Claude, Gemini, OpenAI and OpenAI-compatible backends."""

__version__ = "0.1.0"
