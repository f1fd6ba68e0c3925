"""
Environment-driven settings.

Each setting is a small function so values are read at call time and tests
can change them with `monkeypatch.setenv`.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024  # 10 MiB

_SOURCE_ROOT = Path(__file__).resolve().parent.parent


def host() -> str:
    return os.environ.get("HOST", "0.0.0.0").strip() or "0.0.0.0"


def port() -> int:
    raw = os.environ.get("PORT", "").strip()
    return int(raw) if raw else 4000


def public_dir() -> Path:
    raw = os.environ.get("PUBLIC_DIR", "").strip()
    if raw:
        return Path(raw)
    return _SOURCE_ROOT.parent / "public"


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def max_body_bytes() -> int:
    raw = os.environ.get("MAX_BODY_BYTES", "").strip()
    if not raw:
        return DEFAULT_MAX_BODY_BYTES
    return max(0, int(raw))


def log_level() -> str:
    return (os.environ.get("LOG_LEVEL", "").strip() or "INFO").upper()


def log_json() -> bool:
    return os.environ.get("LOG_JSON", "").strip().lower() in {"1", "true", "yes", "on"}
