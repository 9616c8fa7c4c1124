"""Settings loader for the styling studio."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"


def _load_env_file(path: str = ".env") -> None:
    """Populate environment variables from a .env file if present."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True, frozen=True)
class Settings:
    """Values shared by the service client, upload pipeline and composer."""

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    chat_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    request_timeout: float = 60.0
    upload_policy: str = "sequential"
    composition_policy: str = "ordered"
    isolate_background: bool = True
    classify_uploads: bool = True
    log_level: str = "INFO"


def _build_settings() -> Settings:
    _load_env_file()
    return Settings(
        api_key=os.getenv(
            "STYLESTUDIO_API_KEY",
            os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", "")),
        ),
        base_url=os.getenv("STYLESTUDIO_BASE_URL", DEFAULT_BASE_URL),
        chat_model=os.getenv("STYLESTUDIO_CHAT_MODEL", "gemini-3-flash-preview"),
        image_model=os.getenv("STYLESTUDIO_IMAGE_MODEL", "gemini-2.5-flash-image"),
        request_timeout=float(os.getenv("STYLESTUDIO_REQUEST_TIMEOUT", "60")),
        upload_policy=os.getenv("STYLESTUDIO_UPLOAD_POLICY", "sequential"),
        composition_policy=os.getenv("STYLESTUDIO_COMPOSITION_POLICY", "ordered"),
        isolate_background=_as_bool(os.getenv("STYLESTUDIO_ISOLATE_BACKGROUND", "true")),
        classify_uploads=_as_bool(os.getenv("STYLESTUDIO_CLASSIFY_UPLOADS", "true")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return _build_settings()
