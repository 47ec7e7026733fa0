"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .utils import getenv_str

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_PROVIDER = "gemini"
DEFAULT_STATUS_INTERVAL_S = 2.0
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7860
API_KEY_ENV_VARS = ("API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")


@dataclass(frozen=True)
class StudioConfig:
    api_key: str | None = None
    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_IMAGE_MODEL
    status_interval_s: float = DEFAULT_STATUS_INTERVAL_S
    events_path: Path | None = None
    default_prompt: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls) -> "StudioConfig":
        events_raw = getenv_str("EDIT_STUDIO_EVENTS")
        return cls(
            api_key=getenv_str(*API_KEY_ENV_VARS),
            provider=(getenv_str("EDIT_STUDIO_PROVIDER", default=DEFAULT_PROVIDER) or DEFAULT_PROVIDER).lower(),
            model=getenv_str("EDIT_STUDIO_MODEL", default=DEFAULT_IMAGE_MODEL) or DEFAULT_IMAGE_MODEL,
            status_interval_s=_float_env("EDIT_STUDIO_STATUS_INTERVAL", DEFAULT_STATUS_INTERVAL_S),
            events_path=Path(events_raw).expanduser() if events_raw else None,
            default_prompt=os.getenv("EDIT_STUDIO_DEFAULT_PROMPT", ""),
            host=getenv_str("EDIT_STUDIO_HOST", default=DEFAULT_HOST) or DEFAULT_HOST,
            port=_int_env("EDIT_STUDIO_PORT", DEFAULT_PORT),
        )

    def with_overrides(self, **overrides: Any) -> "StudioConfig":
        """Return a copy with every non-None override applied (CLI flags)."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def _float_env(key: str, default: float) -> float:
    raw = getenv_str(key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _int_env(key: str, default: int) -> int:
    raw = getenv_str(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default
