"""
Redaction helpers for log lines.

Tokens, slugs and e-mail addresses are hashed so log lines can still be
correlated without exposing the value.
"""

from __future__ import annotations

from hashlib import sha256


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"
