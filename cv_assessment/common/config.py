"""
Configuration loader for the CV assessment service.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized configuration for all assessment components.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== LLM APIs =====
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")

    # ===== LLM Model Configuration =====
    DEFAULT_MODEL: str = os.getenv("DEFAULT_MODEL", "gpt-4o")  # Alignment, extraction, summary
    CHEAP_MODEL: str = os.getenv("CHEAP_MODEL", "gpt-4o-mini")  # Name fallback, relevance checks

    # Temperature settings
    ANALYTICAL_TEMPERATURE: float = float(os.getenv("ANALYTICAL_TEMPERATURE", "0.2"))

    # ===== Retry Policy (collaborator calls only) =====
    LLM_RETRY_ATTEMPTS: int = int(os.getenv("LLM_RETRY_ATTEMPTS", "3"))
    LLM_RETRY_MIN_WAIT: float = float(os.getenv("LLM_RETRY_MIN_WAIT", "1"))
    LLM_RETRY_MAX_WAIT: float = float(os.getenv("LLM_RETRY_MAX_WAIT", "10"))

    # ===== Batch Analysis =====
    MAX_CONCURRENT_ANALYSES: int = int(os.getenv("MAX_CONCURRENT_ANALYSES", "5"))

    # ===== Persisted State =====
    # "json" keeps one file per state key under STATE_DIR; "mongodb" uses MONGODB_URI
    STATE_BACKEND: str = os.getenv("STATE_BACKEND", "json").lower()
    STATE_DIR: str = os.getenv("STATE_DIR", "./data/state")
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "cv_assessment")

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        required_settings = {
            "OPENAI_API_KEY": cls.OPENAI_API_KEY,
        }

        if cls.STATE_BACKEND == "mongodb":
            required_settings["MONGODB_URI"] = cls.MONGODB_URI

        missing = [name for name, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if cls.STATE_BACKEND not in ("json", "mongodb"):
            raise ValueError(
                f"STATE_BACKEND must be 'json' or 'mongodb', got '{cls.STATE_BACKEND}'"
            )

        if cls.LLM_RETRY_ATTEMPTS < 1:
            raise ValueError("LLM_RETRY_ATTEMPTS must be at least 1")

        if cls.MAX_CONCURRENT_ANALYSES < 1:
            raise ValueError("MAX_CONCURRENT_ANALYSES must be at least 1")

    @classmethod
    def get_llm_base_url(cls) -> Optional[str]:
        """LLM base URL (None to use OpenAI directly)."""
        return cls.OPENAI_BASE_URL or None

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  LLM: OpenAI {'✓' if cls.OPENAI_API_KEY else '✗ Missing'} (model: {cls.DEFAULT_MODEL}, cheap: {cls.CHEAP_MODEL})
  Retry: {cls.LLM_RETRY_ATTEMPTS} attempts, backoff {cls.LLM_RETRY_MIN_WAIT}-{cls.LLM_RETRY_MAX_WAIT}s
  Batch concurrency: {cls.MAX_CONCURRENT_ANALYSES}
  State backend: {cls.STATE_BACKEND} ({cls.STATE_DIR if cls.STATE_BACKEND == 'json' else ('✓ MongoDB' if cls.MONGODB_URI else '✗ Missing MONGODB_URI')})
"""
