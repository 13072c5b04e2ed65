"""Translation layer - prompts and LLM provider streaming."""
from .llm_client import (
    CompletionStreamer,
    GeminiStreamer,
    LLMProviderError,
    OpenAIStreamer,
    create_streamer,
)
from .prompts import (
    DEFAULT_PROMPT,
    DEFAULT_SYSTEM_MESSAGE,
    improvement_prompt,
    initial_translation_prompt,
    reflection_prompt,
)

__all__ = [
    "CompletionStreamer",
    "GeminiStreamer",
    "LLMProviderError",
    "OpenAIStreamer",
    "create_streamer",
    "DEFAULT_PROMPT",
    "DEFAULT_SYSTEM_MESSAGE",
    "improvement_prompt",
    "initial_translation_prompt",
    "reflection_prompt",
]
