"""
Tutor Configuration

Reads process settings once at startup. The OpenAI credential is mandatory:
without it no conversation can happen, so its absence is reported as a fatal
configuration error instead of failing on the first request.
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_TEMPERATURE = 0.7
DEFAULT_GLOSSARY_MAX_TOKENS = 80


class ConfigurationError(ValueError):
    """Raised when a required setting is missing or unusable."""


@dataclass(frozen=True)
class Settings:
    """Immutable process settings."""
    api_key: str
    model: str = DEFAULT_MODEL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    temperature: float = DEFAULT_TEMPERATURE
    glossary_max_tokens: int = DEFAULT_GLOSSARY_MAX_TOKENS


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load settings from an optional .env file and the process environment.

    Args:
        env_file: Explicit .env path; defaults to python-dotenv's lookup

    Returns:
        Settings instance

    Raises:
        ConfigurationError: if OPENAI_API_KEY is absent or a numeric value is invalid
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key or not api_key.strip():
        raise ConfigurationError("OPENAI_API_KEY not found in environment variables")

    return Settings(
        api_key=api_key.strip(),
        model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        timeout_seconds=_read_float("OPENAI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        temperature=_read_float("TUTOR_TEMPERATURE", DEFAULT_TEMPERATURE),
        glossary_max_tokens=_read_int("GLOSSARY_MAX_TOKENS", DEFAULT_GLOSSARY_MAX_TOKENS),
    )
