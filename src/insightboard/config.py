"""Configuration defaults, env vars, and runtime options for InsightBoard."""

from __future__ import annotations

import os
from dataclasses import dataclass


VERSION = "1.0.0"

DEFAULT_ENGINE = "claude"
DEFAULT_STORE_DIR = "artifacts/jobs"
DEFAULT_ENGINE_TIMEOUT = 120


def _env_int(name: str, fallback: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


@dataclass
class Config:
    """Runtime configuration. Empty/zero fields fall back to env vars, then defaults."""

    # Extraction engine
    ai_engine: str = ""
    engine_timeout: int = 0

    # Job store
    store_dir: str = ""

    # Misc
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.ai_engine:
            self.ai_engine = os.environ.get("INSIGHTBOARD_ENGINE", "").strip().lower() or DEFAULT_ENGINE
        if not self.store_dir:
            self.store_dir = os.environ.get("INSIGHTBOARD_STORE_DIR", "").strip() or DEFAULT_STORE_DIR
        if self.engine_timeout <= 0:
            self.engine_timeout = _env_int("INSIGHTBOARD_ENGINE_TIMEOUT", DEFAULT_ENGINE_TIMEOUT)
            if self.engine_timeout <= 0:
                self.engine_timeout = DEFAULT_ENGINE_TIMEOUT
