"""Environment-backed configuration for the homework chat service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_GATEWAY_BASE_URL = "https://api.openai.com/v1"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass
class Settings:
    """Runtime settings for the gateway client and the local history store.

    Attributes:
        gateway_api_key: Bearer token sent to the chat-completion gateway.
        database_dir: Directory holding the SQLite history file.
        gateway_base_url: Base URL of the gateway; requests go to `<base>/chat/completions`.
        text_model: Model used for text-only questions.
        vision_model: Model used when an image is attached.
        max_tokens: Upper bound on completion length.
        temperature: Sampling temperature; kept low for reproducible step structure.
        log_level: Root logging level name.
    """

    gateway_api_key: str
    database_dir: Path
    gateway_base_url: str = DEFAULT_GATEWAY_BASE_URL
    text_model: str = "gpt-4"
    vision_model: str = "gpt-4-vision-preview"
    max_tokens: int = 1000
    temperature: float = 0.3
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, database_dir: Optional[Path | str] = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            RuntimeError: If the API key or database directory is missing.
        """
        api_key = os.getenv("GATEWAY_API_KEY") or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("GATEWAY_API_KEY environment variable is not set")

        env_dir = database_dir or os.getenv("DATABASE_DIR")
        if env_dir is None or not str(env_dir).strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the chat history database will be stored."
            )

        return cls(
            gateway_api_key=api_key,
            database_dir=Path(env_dir).expanduser(),
            gateway_base_url=(os.getenv("GATEWAY_BASE_URL") or DEFAULT_GATEWAY_BASE_URL).rstrip("/"),
            text_model=os.getenv("GATEWAY_TEXT_MODEL", "gpt-4"),
            vision_model=os.getenv("GATEWAY_VISION_MODEL", "gpt-4-vision-preview"),
            max_tokens=_env_int("GATEWAY_MAX_TOKENS", 1000),
            temperature=_env_float("GATEWAY_TEMPERATURE", 0.3),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
