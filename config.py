"""Configuration management for the translation agent."""
import os
from dataclasses import dataclass
from typing import Optional

from models import ProviderSettings


SUPPORTED_PROVIDERS = ("openai", "gemini")


@dataclass
class Config:
    """Configuration loaded from environment variables."""

    # Default LLM provider ("openai" or "gemini")
    llm: str = "gemini"

    # OpenAI configuration
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"

    # Gemini configuration
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-1.5-flash"
    gemini_max_output_tokens: int = 1000

    # Seconds allowed for each connect, read or write on a provider stream
    request_timeout: float = 120.0

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Where the UI finds the API
    api_base_url: str = "http://localhost:8000"

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            llm=os.getenv("LLM_PROVIDER", "gemini"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_base_url=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            gemini_max_output_tokens=int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "1000")),
            request_timeout=float(os.getenv("LLM_REQUEST_TIMEOUT", "120")),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
            api_base_url=os.getenv("API_BASE_URL", "http://localhost:8000"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def provider_settings(
        self,
        llm: Optional[str] = None,
        model: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
    ) -> ProviderSettings:
        """
        Resolve provider settings for one request.

        Values supplied by the caller take precedence over the environment.

        Raises:
            ValueError: If the provider name is not supported.
        """
        provider = (llm or self.llm).strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unsupported llm '{provider}'. Allowed: {', '.join(SUPPORTED_PROVIDERS)}"
            )

        if provider == "openai":
            return ProviderSettings(
                llm=provider,
                model=model or self.openai_model,
                api_key=openai_api_key or self.openai_api_key,
                base_url=self.openai_base_url,
                timeout=self.request_timeout,
            )

        return ProviderSettings(
            llm=provider,
            model=model or self.gemini_model,
            api_key=gemini_api_key or self.gemini_api_key,
            base_url=self.gemini_base_url,
            max_output_tokens=self.gemini_max_output_tokens,
            timeout=self.request_timeout,
        )
