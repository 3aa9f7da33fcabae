"""
content_guard.config – runtime settings read from the environment.

All values have defaults so the service starts without any configuration
except the Gemini credential, which is only needed once an analysis runs.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_HISTORY_PATH = (
    Path.home() / ".content_guard" / "yt_dhamma_video_history_v3.json"
)
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
DEFAULT_SAMPLING_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_VIDEO_BYTES = 200 * 1024 * 1024  # 200 MB


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    """Immutable service settings."""
    api_key:                 str
    model:                   str   = DEFAULT_MODEL
    api_base:                str   = DEFAULT_API_BASE
    history_path:            Path  = DEFAULT_HISTORY_PATH
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    sampling_timeout_seconds: float = DEFAULT_SAMPLING_TIMEOUT_SECONDS
    max_video_bytes:         int   = DEFAULT_MAX_VIDEO_BYTES

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Recognised variables::

            GEMINI_API_KEY / API_KEY         service credential
            CONTENT_GUARD_MODEL              Gemini model name
            CONTENT_GUARD_API_BASE           REST base URL
            CONTENT_GUARD_HISTORY_PATH       JSON history record
            CONTENT_GUARD_REQUEST_TIMEOUT    seconds
            CONTENT_GUARD_SAMPLING_TIMEOUT   seconds
            CONTENT_GUARD_MAX_VIDEO_BYTES    upload cap in bytes

        Unparsable or non-positive numbers fall back to the defaults.
        """
        history_path = os.getenv("CONTENT_GUARD_HISTORY_PATH")
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "",
            model=os.getenv("CONTENT_GUARD_MODEL") or DEFAULT_MODEL,
            api_base=(
                os.getenv("CONTENT_GUARD_API_BASE") or DEFAULT_API_BASE
            ).rstrip("/"),
            history_path=(
                Path(history_path).expanduser()
                if history_path else DEFAULT_HISTORY_PATH
            ),
            request_timeout_seconds=_env_float(
                "CONTENT_GUARD_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            sampling_timeout_seconds=_env_float(
                "CONTENT_GUARD_SAMPLING_TIMEOUT", DEFAULT_SAMPLING_TIMEOUT_SECONDS
            ),
            max_video_bytes=_env_int(
                "CONTENT_GUARD_MAX_VIDEO_BYTES", DEFAULT_MAX_VIDEO_BYTES
            ),
        )
