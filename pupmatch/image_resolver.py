"""Check that a submitted URL points at an image.

Any http(s) host is accepted; the decision is made from the response to a
HEAD request instead of a list of known image hosts.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)


def is_well_formed_url(url: str | None) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ImageResolver:
    def __init__(self, session=None, timeout: float = 5, probe: bool = True):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.probe = probe

    def is_image(self, url: str | None) -> bool:
        """Return True when ``url`` serves an ``image/*`` content type.

        Args:
            url: Candidate image URL.

        Returns:
            True if the URL is well formed and, when probing is enabled,
            answers a HEAD request with a 2xx image response.
        """
        if not is_well_formed_url(url):
            return False
        if not self.probe:
            return True
        try:
            r = self.session.head(url.strip(), allow_redirects=True, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.info(f"Image URL check failed for {url}: {exc}")
            return False
        if not 200 <= r.status_code < 300:
            logger.info(f"Image URL check got HTTP {r.status_code} for {url}")
            return False
        content_type = (r.headers.get("Content-Type") or "").split(";", 1)[0]
        return content_type.strip().lower().startswith("image/")
