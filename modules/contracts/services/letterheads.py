"""Object storage for uploaded letterhead images.

Images are written under ``<root>/headers/<uuid>.<ext>``.  When a public
base URL is configured (a CDN or bucket fronting the directory) returned
URLs use it; otherwise plain ``file://`` URLs are produced.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

HEADER_PREFIX = "headers"


class LetterheadStorage:
    def __init__(self, root_dir: str | Path, public_base_url: Optional[str] = None) -> None:
        self.root_dir = Path(root_dir)
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _url_for(self, relative: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{relative}"
        return (self.root_dir / relative).resolve().as_uri()

    def _path_for(self, url: str) -> Optional[Path]:
        if self.public_base_url and url.startswith(self.public_base_url + "/"):
            return self.root_dir / url[len(self.public_base_url) + 1:]
        parsed = urlparse(url)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        return None

    def upload(self, data: bytes, extension: str = "png") -> str:
        """Store ``data`` and return its publicly fetchable URL."""

        ext = extension.lower().lstrip(".") or "png"
        relative = f"{HEADER_PREFIX}/{uuid.uuid4().hex}.{ext}"
        target = self.root_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("[letterheads] stored %s (%d bytes)", relative, len(data))
        return self._url_for(relative)

    def remove(self, url: str) -> bool:
        """Best-effort delete of a previously uploaded image."""

        path = self._path_for(url) if url else None
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("[letterheads] could not remove %s: %s", url, exc)
            return False
        return True


__all__ = ["HEADER_PREFIX", "LetterheadStorage"]
