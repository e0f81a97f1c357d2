"""Configuration and simple helper utilities for PupMatch."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

APP_DIR = Path(__file__).resolve().parent
STATIC_DIR = APP_DIR / "static"

STORAGE_KEYS = {
    "dogs": "pupmatch.dogs",
    "adoptions": "pupmatch.adoptions",
    "uploaded_images": "pupmatch.uploaded_images",
}
SYNC_KEY_SUFFIX = ".synced_at"
DEFAULT_CACHE_DIR = "./.cache/pupmatch"
DEFAULT_OWNER_PIN = "owner123"
DEFAULT_SESSION_SECRET = "pupmatch-dev-session-secret-change-me"
DEFAULT_SYNC_TTL_SECONDS = 300
OWNER_COOKIE_NAME = "pupmatch_owner"
OWNER_COOKIE_MAX_AGE_SECONDS = 60 * 60 * 12

ATTRIBUTE_NAMES = ("friendliness", "energy", "trainability", "kidFriendly", "size")
ATTRIBUTE_LABELS = {
    "friendliness": "Friendliness",
    "energy": "Energy",
    "trainability": "Trainability",
    "kidFriendly": "Kid Friendly",
    "size": "Size",
}
DEFAULT_ATTRIBUTES = {
    "friendliness": 5,
    "energy": 4,
    "trainability": 4,
    "kidFriendly": 5,
    "size": 3,
}
MIN_ATTRIBUTE_SCORE = 1
MAX_ATTRIBUTE_SCORE = 5

IMAGE_PRESETS = ("center", "fit", "fill", "original")
DEFAULT_IMAGE_PRESET = "fit"
EDIT_CANVAS_SIZE = 400
THUMBNAIL_SIZE = 120
MAX_UPLOAD_BYTES = 8 * 1024 * 1024

PLACEHOLDER_DATA_URI = (
    'data:image/svg+xml;utf8,<svg xmlns="http://www.w3.org/2000/svg" width="800" '
    'height="600" viewBox="0 0 800 600"><rect width="100%" height="100%" '
    'fill="%23f2f3f5"/><g fill="%239aa1a9" font-family="Arial,Helvetica,sans-serif" '
    'text-anchor="middle"><text x="400" y="310" font-size="22">Image not available'
    "</text></g></svg>"
)
PARENT_PLACEHOLDER_DATA_URI = (
    'data:image/svg+xml;utf8,<svg xmlns="http://www.w3.org/2000/svg" width="400" '
    'height="300" viewBox="0 0 800 600"><rect width="100%" height="100%" '
    'fill="%23f2f3f5"/></svg>'
)


def cache_dir() -> str:
    """Return the directory backing the local record store."""
    return os.environ.get("PUPMATCH_CACHE_DIR", "").strip() or DEFAULT_CACHE_DIR


def owner_pin() -> str:
    """Return the shared owner-mode PIN."""
    return os.environ.get("PUPMATCH_OWNER_PIN", "").strip() or DEFAULT_OWNER_PIN


def api_url() -> str | None:
    """Return the remote mirror base URL, if one is configured."""
    raw = os.environ.get("PUPMATCH_API_URL", "").strip().rstrip("/")
    return raw or None


def sync_ttl_seconds() -> int:
    """Return how long the local cache is trusted before a remote refresh."""
    raw = os.environ.get("PUPMATCH_SYNC_TTL_SECONDS", "").strip()
    try:
        return max(0, int(raw)) if raw else DEFAULT_SYNC_TTL_SECONDS
    except ValueError:
        return DEFAULT_SYNC_TTL_SECONDS


def check_image_urls() -> bool:
    """Return whether submitted image URLs are probed with a HEAD request."""
    raw = os.environ.get("PUPMATCH_CHECK_IMAGE_URLS", "1").strip().lower()
    return raw not in {"0", "false", "no", "off"}
