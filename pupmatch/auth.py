"""Owner-mode PIN check and cookie signing for PupMatch.

Owner mode is a convenience gate on a shared PIN. It is not a security
boundary.
"""

from __future__ import annotations

import hashlib
import hmac
import os
from urllib.parse import urlparse

from .config import DEFAULT_SESSION_SECRET, owner_pin

OWNER_MARKER = "owner"


def pin_matches(candidate: str | None) -> bool:
    """Compare a submitted PIN with the configured one."""
    return hmac.compare_digest((candidate or "").strip(), owner_pin())


def normalize_next_path(value: str | None, default: str = "/") -> str:
    """Normalize redirect targets to local absolute paths only."""
    candidate = (value or "").strip()
    if not candidate:
        return default
    parsed = urlparse(candidate)
    if parsed.scheme or parsed.netloc:
        return default
    if not candidate.startswith("/") or candidate.startswith("//"):
        return default
    return candidate


def session_secret() -> str:
    """Return the cookie-signing secret."""
    secret = os.environ.get("PUPMATCH_SESSION_SECRET", "").strip()
    return secret or DEFAULT_SESSION_SECRET


def owner_signature(nonce: str) -> str:
    payload = f"{OWNER_MARKER}:{nonce}".encode("utf-8")
    return hmac.new(session_secret().encode("utf-8"), payload, hashlib.sha256).hexdigest()


def encode_owner_value(nonce: str | None = None) -> str:
    """Encode signed owner cookie contents."""
    nonce = nonce or os.urandom(8).hex()
    return f"{nonce}.{owner_signature(nonce)}"


def decode_owner_value(raw_value: str | None) -> bool:
    """Return True when an owner cookie value carries a valid signature."""
    value = (raw_value or "").strip()
    if "." not in value:
        return False
    nonce, signature = value.split(".", 1)
    if not nonce:
        return False
    return hmac.compare_digest(signature, owner_signature(nonce))
