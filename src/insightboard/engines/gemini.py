"""Google Gemini CLI engine adapter."""

from __future__ import annotations

import json
import platform
import shutil

from insightboard.engines.base import EngineBase, EngineResult

# Long transcripts go through stdin to stay under command-line length limits (~32KB on Windows)
_STDIN_THRESHOLD = 8000


def _use_stdin(prompt: str) -> bool:
    return len(prompt) > _STDIN_THRESHOLD or platform.system() == "Windows"


def _count(usage: dict, *keys: str) -> int:
    """First usable token count under *keys*; anything non-numeric counts as 0."""
    for key in keys:
        try:
            value = int(usage.get(key) or 0)
        except (TypeError, ValueError):
            continue
        if value:
            return value
    return 0


class GeminiEngine(EngineBase):
    name = "gemini"

    def build_cmd(self, prompt: str, *, use_stdin: bool | None = None) -> list[str]:
        if use_stdin is None:
            use_stdin = _use_stdin(prompt)
        gemini = shutil.which("gemini") or "gemini"
        cmd = [gemini, "--output-format", "json"]
        if use_stdin:
            cmd.append("-")
        else:
            cmd.extend(["-p", prompt])
        return cmd

    def stdin_for(self, prompt: str) -> str | None:
        return prompt if _use_stdin(prompt) else None

    def parse_output(self, raw: str) -> EngineResult:
        result = EngineResult()
        raw = raw or ""

        # The CLI prints one JSON document; tolerate it being split across
        # lines by trying the whole payload before going line by line.
        candidates = [raw.strip()] + [line.strip() for line in raw.splitlines()]
        for candidate in candidates:
            if not candidate.startswith("{"):
                continue
            try:
                obj = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if not isinstance(obj, dict):
                continue

            text = obj.get("response", "") or obj.get("result", "") or obj.get("text", "")
            if text and not result.text:
                result.text = str(text)

            usage = obj.get("usage", {}) or obj.get("usageMetadata", {})
            if isinstance(usage, dict) and usage:
                result.input_tokens = _count(usage, "input_tokens", "promptTokenCount")
                result.output_tokens = _count(usage, "output_tokens", "candidatesTokenCount")
            if result.text:
                break

        # Plain-text mode: the answer is the output itself
        if not result.text:
            result.text = raw.strip()

        return result

    def check_available(self) -> str | None:
        if not shutil.which("gemini"):
            return "Gemini CLI not found. Install from https://github.com/google-gemini/gemini-cli"
        return None
