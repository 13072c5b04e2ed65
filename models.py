"""Data models for the translation agent."""
from dataclasses import dataclass, field
from typing import Dict, Optional


# Stage names, in the order the agent runs them
INITIAL_TRANSLATION = "initialTranslation"
REFLECT_TRANSLATION = "reflectTranslation"
IMPROVE_TRANSLATION = "improveTranslation"

STAGES = (INITIAL_TRANSLATION, REFLECT_TRANSLATION, IMPROVE_TRANSLATION)

# Event types carried on the response stream
EVENT_STAGE = "stage"
EVENT_DELTA = "delta"
EVENT_COMPLETE = "complete"
EVENT_ERROR = "error"

EVENT_TYPES = (EVENT_STAGE, EVENT_DELTA, EVENT_COMPLETE, EVENT_ERROR)

SUPPORTED_LANGUAGES = [
    "English",
    "Chinese",
    "Japanese",
    "German",
    "French",
    "Spanish",
    "Korean",
    "Russian",
    "Italian",
    "Portuguese",
]


@dataclass
class TranslationRequest:
    """One source text plus the language pair to translate it across."""
    text: str
    source: str = "English"
    target: str = "Chinese"
    country: Optional[str] = None  # Regional style for the target language

    def __post_init__(self):
        if not self.text or not self.text.strip():
            raise ValueError("Missing text parameter")
        if not self.source or not self.target:
            raise ValueError("Source and target languages are required")
        if self.country is not None and not self.country.strip():
            self.country = None


@dataclass
class ProviderSettings:
    """Resolved LLM provider settings for one request."""
    llm: str               # "openai" | "gemini"
    model: str
    api_key: str
    base_url: str
    max_output_tokens: Optional[int] = None
    timeout: float = 120.0


@dataclass
class StreamEvent:
    """One event on the translation response stream."""
    type: str                    # "stage" | "delta" | "complete" | "error"
    stage: Optional[str] = None  # Set on "stage" and "delta" events
    text: str = ""               # Model output for "delta", message for "error"


@dataclass
class TranslationBuffers:
    """Text accumulated per stage while a response stream is consumed."""
    buffers: Dict[str, str] = field(default_factory=lambda: {stage: "" for stage in STAGES})
    current_stage: Optional[str] = None
    completed: bool = False
    error: Optional[str] = None

    @property
    def initial_translation(self) -> str:
        return self.buffers[INITIAL_TRANSLATION]

    @property
    def reflection(self) -> str:
        return self.buffers[REFLECT_TRANSLATION]

    @property
    def improved_translation(self) -> str:
        return self.buffers[IMPROVE_TRANSLATION]

    def apply(self, event: StreamEvent) -> None:
        """
        Fold one stream event into the buffers.

        A stage event clears and selects its buffer, a delta appends to the
        buffer of the stage it names.
        """
        if event.type == EVENT_STAGE:
            self.current_stage = event.stage
            self.buffers[event.stage] = ""
        elif event.type == EVENT_DELTA:
            stage = event.stage or self.current_stage
            if stage is None:
                # Plain completions carry no stage; keep them in the first buffer
                stage = INITIAL_TRANSLATION
            self.buffers[stage] += event.text
        elif event.type == EVENT_COMPLETE:
            self.completed = True
        elif event.type == EVENT_ERROR:
            self.error = event.text
