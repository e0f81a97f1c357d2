"""HTTP client for the dogs/adoptions handlers used as the remote mirror."""

from __future__ import annotations

import requests

USER_AGENT = "pupmatch/1.0"


class RemoteError(RuntimeError):
    """Raised when the remote record store rejects or fails a request."""


class RemoteRecords:
    def __init__(self, base_url: str, session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        try:
            r = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
            r.raise_for_status()
        except requests.RequestException as exc:
            raise RemoteError(f"{method} {path} failed: {exc}") from exc
        return r

    def _json(self, method: str, path: str, **kwargs):
        r = self._request(method, path, **kwargs)
        try:
            return r.json()
        except ValueError as exc:
            raise RemoteError(f"{method} {path} returned invalid JSON: {exc}") from exc

    def list_dogs(self) -> list[dict]:
        rows = self._json("GET", "/api/dogs")
        if not isinstance(rows, list):
            raise RemoteError("GET /api/dogs returned a non-list payload")
        return rows

    def create_dog(self, payload: dict) -> dict:
        return self._json("POST", "/api/dogs", json=payload)

    def delete_dog(self, dog_id: str) -> None:
        self._request("DELETE", "/api/dogs", params={"id": dog_id})

    def create_adoption(self, payload: dict) -> dict:
        return self._json("POST", "/api/adoptions", json=payload)
