from __future__ import annotations

import re

BEARER_PATTERN = re.compile(r"(Bearer\s+)[^\s'\",]+", re.IGNORECASE)
SECRET_PATTERN = re.compile(r"\b(sk-|drift_)[A-Za-z0-9_\-]{6,}")


def redact_secrets(text: str) -> str:
    """Redact bearer tokens and API keys from a string."""

    text = BEARER_PATTERN.sub(r"\1***", text)
    return SECRET_PATTERN.sub(r"\1***", text)
