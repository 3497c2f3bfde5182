"""Device-local cache of letterhead images keyed by their source URL.

Bytes live in a small SQLite file (``images`` table) so they survive
restarts.  :meth:`BlobCache.resolve` hands back a path to a session-scoped
file holding those bytes, which Qt image loaders accept directly.  The cache
is best effort: any failure falls back to the original URL.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import sqlite3
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

Fetch = Callable[[str], bytes]


class BlobCache:
    def __init__(self, db_path: str | Path, fetch: Fetch) -> None:
        self.db_path = Path(db_path)
        self._fetch = fetch
        self._session_dir: Optional[Path] = None
        self._resolved: Dict[str, str] = {}

    # -- persistent store -------------------------------------------------
    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute("CREATE TABLE IF NOT EXISTS images (url TEXT PRIMARY KEY, data BLOB NOT NULL)")
        return conn

    def _read(self, url: str) -> Optional[bytes]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT data FROM images WHERE url = ?", (url,)).fetchone()
        finally:
            conn.close()
        return bytes(row[0]) if row else None

    def _write(self, url: str, data: bytes) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO images (url, data) VALUES (?, ?) "
                    "ON CONFLICT(url) DO UPDATE SET data = excluded.data",
                    (url, sqlite3.Binary(data)),
                )
        finally:
            conn.close()

    # -- local references -------------------------------------------------
    def _materialize(self, url: str, data: bytes) -> str:
        if self._session_dir is None:
            self._session_dir = Path(tempfile.mkdtemp(prefix="trackdesk-img-"))
        name = hashlib.sha1(url.encode("utf-8")).hexdigest()
        path = self._session_dir / name
        path.write_bytes(data)
        local = str(path)
        self._resolved[url] = local
        return local

    # -- public API -------------------------------------------------------
    def resolve(self, url: str) -> str:
        """Return a local reference for ``url``, fetching it at most once."""

        if not url:
            return ""
        try:
            data = self._read(url)
            if data is not None:
                return self._resolved.get(url) or self._materialize(url, data)
            data = self._fetch(url)
            self._write(url, data)
            return self._materialize(url, data)
        except Exception as exc:
            logger.warning("[blob_cache] caching failed for %s: %s", url, exc)
            return url

    def put(self, url: str, data: bytes) -> None:
        """Store ``data`` under ``url`` without touching the network."""

        if not url:
            return
        try:
            self._write(url, data)
            self._materialize(url, data)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("[blob_cache] failed to store %s: %s", url, exc)

    def contains(self, url: str) -> bool:
        try:
            return self._read(url) is not None
        except sqlite3.Error:
            return False

    def warm(self, urls: Iterable[str]) -> None:
        """Resolve every URL once so later renders start from the cache."""

        for url in urls:
            if url:
                self.resolve(url)

    def close(self) -> None:
        """Delete this session's materialized files; the SQLite store is kept."""

        if self._session_dir is not None:
            shutil.rmtree(self._session_dir, ignore_errors=True)
            self._session_dir = None
        self._resolved.clear()


__all__ = ["BlobCache"]
