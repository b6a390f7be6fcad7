"""Claude Code engine adapter."""

from __future__ import annotations

import json
import shutil

from insightboard.engines.base import EngineBase, EngineResult


class ClaudeEngine(EngineBase):
    name = "claude"

    def build_cmd(self, prompt: str) -> list[str]:
        # Resolved path: some platforms (e.g. Windows with pipx) resolve PATH
        # differently in the child process.
        claude = shutil.which("claude") or "claude"
        return [claude, "-p", prompt, "--output-format", "json"]

    def parse_output(self, raw: str) -> EngineResult:
        result = EngineResult()
        for line in raw.splitlines():
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(obj, dict) or obj.get("type") != "result":
                continue
            result.text = str(obj.get("result", "") or "")
            usage = obj.get("usage") or {}
            try:
                result.input_tokens = int(usage.get("input_tokens", 0))
                result.output_tokens = int(usage.get("output_tokens", 0))
            except (TypeError, ValueError):
                pass
            try:
                result.duration_ms = int(obj.get("duration_ms", 0) or 0)
            except (TypeError, ValueError):
                pass
        return result

    def check_available(self) -> str | None:
        if not shutil.which("claude"):
            return "Claude Code CLI not found. Install from https://github.com/anthropics/claude-code"
        return None
