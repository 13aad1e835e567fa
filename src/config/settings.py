"""
Can't Stop - Application Settings

Loads configuration from environment variables using Pydantic Settings.
When running under Streamlit, bridges st.secrets into env vars so Pydantic
can read them.
"""

import logging
import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

_BRIDGED_KEYS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "DEBUG",
    "LOG_LEVEL",
    "MAX_COMMIT_RETRIES",
    "BROADCAST_TIMEOUT",
)


def _load_streamlit_secrets() -> None:
    """Bridge Streamlit secrets into environment variables."""
    try:
        import streamlit as st

        for key in _BRIDGED_KEYS:
            if key not in os.environ and key in st.secrets:
                os.environ[key] = str(st.secrets[key])
    except Exception:
        pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    supabase_url: str
    supabase_anon_key: str

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Gameplay
    max_commit_retries: int = Field(default=3, ge=1)
    broadcast_timeout: float = Field(default=5.0, gt=0)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    _load_streamlit_secrets()
    return Settings()


_logging_configured = False


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger (once)."""
    global _logging_configured
    if _logging_configured:
        return

    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every Supabase request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _logging_configured = True
