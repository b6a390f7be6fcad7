"""Base class for AI engine adapters used to extract tasks from transcripts.

An engine wraps one AI CLI. ``run_sync`` runs it once with the extraction
prompt and returns an :class:`EngineResult`; failures never raise, they come
back as ``EngineResult.error`` for :mod:`insightboard.extraction` to classify.
"""

from __future__ import annotations

import json
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from insightboard.engine_errors import looks_like_policy_block, looks_like_rate_limit


@dataclass
class EngineResult:
    """Uniform result from any engine invocation."""

    text: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    duration_ms: int = 0
    error: str = ""
    return_code: int = 0


class EngineBase(ABC):
    """Abstract engine adapter.  Subclasses implement ``build_cmd`` and ``parse_output``."""

    name: str = "base"

    @abstractmethod
    def build_cmd(self, prompt: str) -> list[str]:
        """Return the CLI command list for the given prompt."""
        ...

    @abstractmethod
    def parse_output(self, raw: str) -> EngineResult:
        """Parse raw stdout into an :class:`EngineResult`."""
        ...

    def stdin_for(self, prompt: str) -> str | None:
        """Text to feed on stdin, or ``None`` when the prompt travels in argv."""
        return None

    def check_available(self) -> str | None:
        """Return an error message if the engine CLI is not available, else None."""
        cmd_name = self.build_cmd("test")[0]
        if not shutil.which(cmd_name):
            return f"{cmd_name} not found in PATH"
        return None

    # ── execution ────────────────────────────────────────────────

    def run_sync(self, prompt: str, *, timeout: int | None = None) -> EngineResult:
        """Execute the engine synchronously and return the parsed result."""
        cmd = self.build_cmd(prompt)
        start = time.monotonic()
        try:
            proc = subprocess.run(
                cmd,
                input=self.stdin_for(prompt),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return EngineResult(error="timeout", return_code=-1)
        except FileNotFoundError:
            return EngineResult(error=f"{cmd[0]} not found in PATH", return_code=-1)
        except OSError as exc:
            return EngineResult(error=f"{cmd[0]}: {exc}", return_code=-1)

        return self._finalize(proc, elapsed_ms=int((time.monotonic() - start) * 1000))

    def _finalize(self, proc: subprocess.CompletedProcess[str], *, elapsed_ms: int) -> EngineResult:
        stdout = proc.stdout or ""
        result = self.parse_output(stdout)
        result.return_code = proc.returncode
        result.duration_ms = result.duration_ms or elapsed_ms
        result.error = result.error or self._check_errors(stdout)

        if proc.returncode != 0 and not result.error:
            # Argument and auth problems often show up only on stderr.
            stderr_lines = (proc.stderr or "").strip().splitlines()
            result.error = stderr_lines[0] if stderr_lines else f"exit code {proc.returncode}"
        return result

    # ── structured error sniffing ────────────────────────────────

    @staticmethod
    def _check_errors(raw: str) -> str:
        """Return the first error reported by a JSON line of *raw*, or ``""``.

        Plain-text lines are ignored: an extracted task may well say "error".
        """
        for line in (raw or "").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(obj, dict):
                found = EngineBase._error_from_event(obj)
                if found:
                    return found
        return ""

    @staticmethod
    def _error_from_event(obj: dict[str, Any]) -> str:
        err = obj.get("error")
        if isinstance(err, dict):
            message = str(err.get("message", "")).strip()
            code = str(err.get("type") or err.get("code") or err.get("status") or "").lower()
            if message:
                return message
            if looks_like_rate_limit(code):
                return "Rate limit exceeded"
        elif isinstance(err, str) and err.strip():
            if looks_like_policy_block(err):
                return "Blocked by policy"
            if looks_like_rate_limit(err):
                return "Rate limit exceeded"
            return err.strip()

        if str(obj.get("type", "")).lower() == "error":
            return str(obj.get("message") or obj.get("text") or "").strip() or "Unknown error"
        if obj.get("is_error") is True:
            return str(obj.get("result", "")).strip() or "Unknown error"
        return ""
