"""Classification of extraction engine error text."""

from __future__ import annotations

RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "rate limit",
    "rate_limit",
    "usage limit",
    "you've hit your limit",
    "quota",
    "429",
    "too many requests",
    "resource_exhausted",
)

POLICY_BLOCK_PATTERNS: tuple[str, ...] = (
    "blocked by policy",
    "safety",
    "content filter",
    "approval_policy",
)

TIMEOUT_PATTERNS: tuple[str, ...] = (
    "timeout",
    "timed out",
    "etimedout",
    "deadline exceeded",
)

UNAVAILABLE_PATTERNS: tuple[str, ...] = (
    "not found in path",
    "command not found",
    "enoent",
    "eacces",
    "permission denied",
    "network",
    "econnreset",
    "tls",
    "ssl",
    "certificate",
    "503",
    "unavailable",
)


# Checked in order: a rate-limit message often also mentions the network.
_KINDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("rate_limit", RATE_LIMIT_PATTERNS),
    ("policy", POLICY_BLOCK_PATTERNS),
    ("timeout", TIMEOUT_PATTERNS),
    ("unavailable", UNAVAILABLE_PATTERNS),
)


def _contains_any(text: str, patterns: tuple[str, ...]) -> bool:
    if not text:
        return False
    lower = text.lower()
    return any(pattern in lower for pattern in patterns)


def looks_like_rate_limit(text: str) -> bool:
    """Return ``True`` when text matches a rate/usage/quota limit."""
    return _contains_any(text, RATE_LIMIT_PATTERNS)


def looks_like_policy_block(text: str) -> bool:
    """Return ``True`` when the engine refused the prompt."""
    return _contains_any(text, POLICY_BLOCK_PATTERNS)


def looks_like_timeout(text: str) -> bool:
    return _contains_any(text, TIMEOUT_PATTERNS)


def looks_like_unavailable(text: str) -> bool:
    """Return ``True`` when the engine could not be reached at all."""
    return _contains_any(text, UNAVAILABLE_PATTERNS)


def classify_engine_error(text: str) -> str:
    """Map engine error text to a short failure kind.

    Returns ``rate_limit``, ``policy``, ``timeout``, ``unavailable``, or
    ``engine`` when nothing more specific matches.
    """
    for kind, patterns in _KINDS:
        if _contains_any(text, patterns):
            return kind
    return "engine"
