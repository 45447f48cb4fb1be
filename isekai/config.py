"""
Isekai Chronicles configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Game configuration loaded from environment variables."""

    # Narrative generation provider. Leave unset to play with built-in fallback text.
    LLM_PROVIDER: str | None = os.getenv("LLM_PROVIDER")
    LLM_MODEL: str | None = os.getenv("LLM_MODEL")

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    # Ollama server for LLM_PROVIDER=ollama
    OLLAMA_BASE_URL: str | None = os.getenv("OLLAMA_BASE_URL")

    # A slow generation call degrades to fallback stats after this many seconds
    GENERATION_TIMEOUT_SECONDS: float = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "20"))

    # Saves
    SAVE_DIR: Path = Path(os.getenv("SAVE_DIR", "saves"))

    # Display language for new sessions ("en" or "ko")
    DEFAULT_LOCALE: str = os.getenv("DEFAULT_LOCALE", "en")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def generation_enabled(cls) -> bool:
        return bool(cls.LLM_PROVIDER and cls.LLM_MODEL)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        if cls.LLM_PROVIDER and not cls.LLM_MODEL:
            raise ValueError(
                "LLM_MODEL is required when LLM_PROVIDER is set. "
                "Unset LLM_PROVIDER to use the built-in fallback narrative."
            )

        if cls.LLM_PROVIDER == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider"
            )

        if cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider. "
                "For a local model, set LLM_PROVIDER=ollama instead."
            )

        if cls.GENERATION_TIMEOUT_SECONDS <= 0:
            raise ValueError("GENERATION_TIMEOUT_SECONDS must be positive")

        if cls.DEFAULT_LOCALE not in ("en", "ko"):
            raise ValueError(
                f"DEFAULT_LOCALE must be 'en' or 'ko' (got {cls.DEFAULT_LOCALE!r})"
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        provider = cls.LLM_PROVIDER or "none (fallback narrative)"
        lines = [
            "Isekai Chronicles Configuration:",
            f"  LLM Provider: {provider}",
            f"  LLM Model: {cls.LLM_MODEL or '-'}",
            f"  Generation Timeout: {cls.GENERATION_TIMEOUT_SECONDS}s",
            f"  Save Directory: {cls.SAVE_DIR}",
            f"  Locale: {cls.DEFAULT_LOCALE}",
        ]
        return "\n".join(lines)
