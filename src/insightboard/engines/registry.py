"""Engine registry — get the right adapter by name."""

from __future__ import annotations

from insightboard.engines.base import EngineBase
from insightboard.engines.claude import ClaudeEngine
from insightboard.engines.gemini import GeminiEngine


def get_engine(name: str) -> EngineBase:
    """Return an engine adapter for *name*."""
    match name:
        case "claude":
            return ClaudeEngine()
        case "gemini":
            return GeminiEngine()
        case _:
            raise ValueError(f"Unknown engine: {name}")


ENGINE_NAMES = ("claude", "gemini")
