"""Streaming HTTP client for the translation API, used by the UI."""
from typing import Callable, Dict, Iterator, Optional

import requests
from loguru import logger

from models import EVENT_ERROR, StreamEvent, TranslationBuffers, TranslationRequest
from stream_protocol import StreamProtocolError, decode_event


class TranslationClientError(RuntimeError):
    """Raised when a translation request fails on the wire or in the agent."""


UpdateCallback = Callable[[TranslationBuffers, StreamEvent], None]


class TranslationClient:
    """Issues streaming translation requests and demultiplexes the stages."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        session: Optional[requests.Session] = None,
        timeout: float = 300.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def check_health(self) -> bool:
        """Check if the API is running."""
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=2)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def stream_events(
        self,
        request: TranslationRequest,
        llm: Optional[str] = None,
        model: Optional[str] = None,
        api_keys: Optional[Dict[str, str]] = None,
    ) -> Iterator[StreamEvent]:
        """
        Send one translation request and yield events as they arrive.

        Args:
            request: Text and language pair
            llm: Optional provider override ("openai" or "gemini")
            model: Optional model override
            api_keys: Optional {"OPENAI_API_KEY": ..., "GEMINI_API_KEY": ...}

        Raises:
            TranslationClientError: On transport failure, a non-2xx status or
                a malformed event line.
        """
        params = {"text": request.text, "source": request.source, "target": request.target}
        if request.country:
            params["country"] = request.country
        if llm:
            params["llm"] = llm
        if model:
            params["model"] = model
        keys = {name: value for name, value in (api_keys or {}).items() if value}

        url = f"{self.base_url}/api/translate"
        try:
            if keys:
                # Keys go in the body so they never appear in access logs
                response = self.session.post(
                    url, json={**params, **keys}, stream=True, timeout=self.timeout
                )
            else:
                response = self.session.get(
                    url, params=params, stream=True, timeout=self.timeout
                )
        except requests.RequestException as e:
            raise TranslationClientError(f"Translation request failed: {e}") from e

        with response:
            if not response.ok:
                raise TranslationClientError(
                    f"HTTP error! status: {response.status_code} {_error_detail(response)}".rstrip()
                )
            try:
                for line in response.iter_lines(decode_unicode=True):
                    if not line or not line.strip():
                        continue
                    yield decode_event(line)
            except StreamProtocolError as e:
                raise TranslationClientError(f"Malformed response stream: {e}") from e
            except requests.RequestException as e:
                raise TranslationClientError(f"Translation stream interrupted: {e}") from e

    def translate(
        self,
        request: TranslationRequest,
        on_update: Optional[UpdateCallback] = None,
        **options,
    ) -> TranslationBuffers:
        """
        Run one translation, folding events into per-stage buffers.

        `on_update(buffers, event)` is called after every event so callers
        can render progress. An error event from the agent raises
        TranslationClientError after its callback has run.
        """
        buffers = TranslationBuffers()
        for event in self.stream_events(request, **options):
            buffers.apply(event)
            if on_update:
                on_update(buffers, event)
            if event.type == EVENT_ERROR:
                logger.warning("Translation agent reported an error: {}", event.text)
                raise TranslationClientError(event.text)

        if not buffers.completed:
            raise TranslationClientError("Translation stream ended before completion")
        logger.info("Translation finished, {} chars", len(buffers.improved_translation))
        return buffers


def _error_detail(response: requests.Response) -> str:
    """Best-effort FastAPI `detail` message from an error response."""
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, dict) and isinstance(payload.get("detail"), str):
        return f"({payload['detail']})"
    return ""
