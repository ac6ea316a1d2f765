"""Sanitisation helpers for log output."""

from __future__ import annotations

import re

_BEARER_RE = re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)
_TOKEN_QUERY_RE = re.compile(r"(?i)(token|refresh_token|access_token)=([^&\s]+)")
_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PASSWORD_RE = re.compile(r'(?i)("?password"?\s*[:=]\s*)("[^"]*"|[^,\s}]+)')


def redact_text(value: str | None) -> str:
    """Return ``value`` with bearer tokens, emails and secrets removed."""

    if not value:
        return ""
    text = str(value)
    redacted = _BEARER_RE.sub("Bearer ***", text)
    redacted = _TOKEN_QUERY_RE.sub(lambda match: f"{match.group(1)}=***", redacted)
    redacted = _PASSWORD_RE.sub(lambda match: f"{match.group(1)}***", redacted)
    redacted = _EMAIL_RE.sub("***@***", redacted)
    return redacted.replace("authorization", "auth").replace("Authorization", "Auth")


def truncate(value: str | None, limit: int = 200) -> str:
    """Return ``value`` shortened to ``limit`` characters."""

    if not value:
        return ""
    text = str(value)
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


__all__ = ["redact_text", "truncate"]
