from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx


DEFAULT_TIMEOUT = httpx.Timeout(20.0, connect=5.0)


class HttpClient:
    """Thin wrapper around httpx for simpler mocking in tests.

    ``file://`` URLs (produced by the local letterhead bucket) are read from
    disk so callers can treat every stored image URL the same way.
    """

    def __init__(self) -> None:
        self._client = httpx.Client(
            timeout=DEFAULT_TIMEOUT,
            follow_redirects=True,
            headers={"User-Agent": "TrackDesk/1.0", "Cache-Control": "no-cache"},
        )

    def get_bytes(self, url: str) -> bytes:
        parsed = urlparse(url)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path)).read_bytes()
        r = self._client.get(url)
        r.raise_for_status()
        return r.content

    def close(self) -> None:
        self._client.close()
