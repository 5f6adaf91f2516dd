"""Session identifier resolution for archive write routes."""
from __future__ import annotations

import secrets
import string
import time
from typing import Dict, Optional

from fastapi import Request

SESSION_HEADER = "x-session-id"
SESSION_COOKIE = "session-id"

_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id() -> str:
    """Time component plus nine random base36 characters."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def resolve_session_id(request: Request, body_session_id: Optional[str] = None) -> str:
    """Body value, then header, then cookie, then a fresh identifier."""
    for candidate in (
        body_session_id,
        request.headers.get(SESSION_HEADER),
        request.cookies.get(SESSION_COOKIE),
    ):
        if candidate and candidate.strip():
            return candidate.strip()
    return generate_session_id()


def session_headers(session_id: str) -> Dict[str, str]:
    """Echo header for the resolved session; skipped when the id is not header-safe."""
    if session_id.isascii() and session_id.isprintable():
        return {SESSION_HEADER: session_id}
    return {}
