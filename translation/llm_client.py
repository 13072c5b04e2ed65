"""Streaming chat completions from OpenAI and Gemini over httpx."""
import json
import re
from typing import Any, AsyncIterator, Dict, Optional, Protocol, Tuple

import httpx
from loguru import logger

from models import ProviderSettings


# Canned model turn that follows the system message in the Gemini chat history
GEMINI_GREETING = "Great to meet you. What would you like to know?"

_MAX_PROVIDER_MESSAGE_CHARS = 180


class LLMProviderError(RuntimeError):
    """Raised when a provider request fails or streams malformed output."""

    def __init__(
        self,
        message: str,
        failure_kind: str = "unknown",
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code


class CompletionStreamer(Protocol):
    """Anything that can stream a completion for one prompt."""

    def stream(self, prompt: str, system_message: str) -> AsyncIterator[str]:
        """Yield text chunks as the provider produces them."""

    async def aclose(self) -> None:
        """Release network resources."""


def redact_secrets(text: str) -> str:
    """Mask API-key-like tokens in provider messages."""
    redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
    redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{20,}\b", "[redacted-key]", redacted)
    redacted = re.sub(r"(?i)bearer\s+[A-Za-z0-9._-]{12,}", "Bearer [redacted-token]", redacted)
    return redacted


def short_message(text: str) -> str:
    """Collapse whitespace and cap the length of a provider message."""
    compact = " ".join(text.split())
    if len(compact) <= _MAX_PROVIDER_MESSAGE_CHARS:
        return compact
    return f"{compact[: _MAX_PROVIDER_MESSAGE_CHARS - 1]}..."


def extract_provider_message(body: str) -> str:
    """Pull the human-readable message out of a provider error body."""
    if not body:
        return ""
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return short_message(redact_secrets(body))

    # Gemini wraps errors in a one-element list
    if isinstance(payload, list) and payload:
        payload = payload[0]

    message = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            message = error["message"]
        elif isinstance(error, str):
            message = error
    if not message:
        message = body
    return short_message(redact_secrets(message))


def classify_http_failure(status_code: int, message: str) -> str:
    """Map an HTTP status and provider message to a failure kind."""
    lower = message.lower()
    if status_code == 401 or (status_code in (400, 403) and "api key" in lower):
        return "invalid_api_key"
    if status_code == 429:
        return "rate_limited"
    if status_code == 404 or ("model" in lower and ("not found" in lower or "does not exist" in lower)):
        return "invalid_model"
    if status_code in (408, 504):
        return "timeout"
    return "http_error"


class _BaseStreamer:
    """Shared request and SSE handling for provider streamers."""

    provider_name = "LLM"

    def __init__(self, settings: ProviderSettings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.model = settings.model
        self.base_url = settings.base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=settings.timeout)

    def _build_request(self, prompt: str, system_message: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        raise NotImplementedError

    def _extract_text(self, payload: Dict[str, Any]) -> str:
        raise NotImplementedError

    def _require_api_key(self) -> None:
        if not self.settings.api_key:
            raise LLMProviderError(
                f"Missing {self.provider_name} API key. Set {self.settings.llm.upper()}_API_KEY "
                "or pass it with the request.",
                failure_kind="invalid_api_key",
            )

    async def stream(self, prompt: str, system_message: str) -> AsyncIterator[str]:
        """
        Stream one completion from the provider.

        Args:
            prompt: User message
            system_message: Instructions framing the conversation

        Yields:
            Non-empty text chunks in arrival order
        """
        self._require_api_key()
        url, headers, payload = self._build_request(prompt, system_message)
        logger.debug("Streaming {} completion, model={}", self.provider_name, self.model)

        try:
            async with self.client.stream("POST", url, headers=headers, json=payload) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise self._http_error(response.status_code, body)

                async for data in self._iter_sse_data(response):
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError as e:
                        raise LLMProviderError(
                            f"{self.provider_name} streamed invalid JSON: {short_message(data)}",
                            failure_kind="malformed_stream",
                        ) from e
                    text = self._extract_text(event)
                    if text:
                        yield text
        except httpx.TimeoutException as e:
            raise LLMProviderError(
                f"{self.provider_name} request timed out.", failure_kind="timeout"
            ) from e
        except httpx.HTTPError as e:
            raise LLMProviderError(
                f"{self.provider_name} request transport error: {short_message(redact_secrets(str(e)))}",
                failure_kind="transport",
            ) from e

    async def _iter_sse_data(self, response: httpx.Response) -> AsyncIterator[str]:
        """Yield the payload of each `data:` line of a server-sent event stream."""
        async for line in response.aiter_lines():
            line = line.strip()
            if not line or line.startswith(":"):
                continue
            if not line.startswith("data:"):
                continue
            data = line[len("data:"):].strip()
            if data == "[DONE]":
                return
            yield data

    def _http_error(self, status_code: int, body: str) -> LLMProviderError:
        message = extract_provider_message(body)
        failure_kind = classify_http_failure(status_code, message)
        headline = {
            "invalid_api_key": f"{self.provider_name} authentication failed",
            "rate_limited": f"{self.provider_name} rate limit or quota exceeded",
            "invalid_model": f"{self.provider_name} rejected the model '{self.model}'",
            "timeout": f"{self.provider_name} request timed out",
        }.get(failure_kind, f"{self.provider_name} request failed")

        if message:
            detail = f"{headline} (HTTP {status_code}): {message}"
        else:
            detail = f"{headline} (HTTP {status_code})."
        return LLMProviderError(detail, failure_kind=failure_kind, status_code=status_code)

    async def aclose(self):
        """Close the HTTP client."""
        await self.client.aclose()


class OpenAIStreamer(_BaseStreamer):
    """Chat-completions streaming against the OpenAI REST API (or a compatible base URL)."""

    provider_name = "OpenAI"

    def _build_request(self, prompt, system_message):
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_message},
                {"role": "user", "content": prompt},
            ],
            "stream": True,
        }
        return url, headers, payload

    def _extract_text(self, payload):
        if isinstance(payload.get("error"), dict):
            raise LLMProviderError(
                f"OpenAI stream error: {extract_provider_message(json.dumps(payload))}",
                failure_kind="provider_error",
            )
        choices = payload.get("choices") or []
        if not choices:
            return ""
        delta = choices[0].get("delta") or {}
        content = delta.get("content")
        return content if isinstance(content, str) else ""


class GeminiStreamer(_BaseStreamer):
    """Chat streaming against the Gemini generative language REST API."""

    provider_name = "Gemini"

    def _build_request(self, prompt, system_message):
        url = f"{self.base_url}/models/{self.model}:streamGenerateContent?alt=sse"
        headers = {
            "x-goog-api-key": self.settings.api_key,
            "Content-Type": "application/json",
        }
        payload: Dict[str, Any] = {
            "contents": [
                {"role": "user", "parts": [{"text": system_message}]},
                {"role": "model", "parts": [{"text": GEMINI_GREETING}]},
                {"role": "user", "parts": [{"text": prompt}]},
            ],
        }
        if self.settings.max_output_tokens:
            payload["generationConfig"] = {"maxOutputTokens": self.settings.max_output_tokens}
        return url, headers, payload

    def _extract_text(self, payload):
        if isinstance(payload.get("error"), dict):
            raise LLMProviderError(
                f"Gemini stream error: {extract_provider_message(json.dumps(payload))}",
                failure_kind="provider_error",
            )

        candidates = payload.get("candidates") or []
        if not candidates:
            block_reason = (payload.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise LLMProviderError(
                    f"Gemini blocked the prompt: {block_reason}",
                    failure_kind="blocked",
                )
            return ""

        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def create_streamer(settings: ProviderSettings, client: Optional[httpx.AsyncClient] = None) -> CompletionStreamer:
    """Build the streamer for the provider named in the settings."""
    if settings.llm == "openai":
        return OpenAIStreamer(settings, client=client)
    if settings.llm == "gemini":
        return GeminiStreamer(settings, client=client)
    raise ValueError(f"Unsupported llm: {settings.llm}")
