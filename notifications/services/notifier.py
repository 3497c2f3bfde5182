from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Dict, List

from PySide6.QtCore import QObject, Signal

from notifications.models.notification import Notification

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Notifier(QObject):
    """Central service for emitting transient toast notifications.

    One instance is created by the application context and its bound
    :meth:`notify` method is handed to every service as the notification
    callback.
    """

    notificationCreated = Signal(dict)
    showToast = Signal(dict)

    def __init__(self, *, default_duration_ms: int = 4500, throttle_seconds: float = 2.0) -> None:
        super().__init__()
        self._recent: List[Dict[str, Any]] = []
        self._throttle: Dict[tuple[str, str], float] = {}
        self._default_mode = "auto"
        self._default_duration = default_duration_ms
        self._throttle_seconds = throttle_seconds

    def notify(self, note: Notification) -> None:
        payload = dataclasses.asdict(note)
        if payload.get("toast_mode") is None:
            payload["toast_mode"] = self._default_mode
        if payload.get("toast_duration_ms") is None:
            payload["toast_duration_ms"] = self._default_duration

        key = (payload["title"], payload["message"])
        now = time.monotonic()
        if key in self._throttle and now - self._throttle[key] < self._throttle_seconds:
            return
        self._throttle[key] = now

        logger.log(
            _LOG_LEVELS.get(payload["severity"], logging.INFO),
            "[notify] %s: %s",
            payload["title"],
            payload["message"],
        )
        self._recent.append(payload)
        self.notificationCreated.emit(payload)
        self.showToast.emit(payload)

    def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self._recent[-limit:]
