from __future__ import annotations

import pytest

pytest.importorskip("PySide6")

from notifications.models import Notification  # noqa: E402
from notifications.services import Notifier  # noqa: E402


def test_defaults_are_filled_in():
    notifier = Notifier(default_duration_ms=1000)
    shown = []
    notifier.showToast.connect(shown.append)

    notifier.notify(Notification("Title", "Body"))

    assert shown[0]["toast_mode"] == "auto"
    assert shown[0]["toast_duration_ms"] == 1000
    assert notifier.recent() == shown


def test_explicit_toast_settings_are_kept():
    notifier = Notifier()
    notifier.notify(Notification("T", "M", severity="error", toast_mode="sticky", toast_duration_ms=10))

    payload = notifier.recent()[-1]
    assert (payload["toast_mode"], payload["toast_duration_ms"], payload["severity"]) == ("sticky", 10, "error")


def test_repeated_messages_are_throttled():
    notifier = Notifier(throttle_seconds=60)

    notifier.notify(Notification("T", "same"))
    notifier.notify(Notification("T", "same"))
    notifier.notify(Notification("T", "other"))

    assert [p["message"] for p in notifier.recent()] == ["same", "other"]


def test_zero_throttle_lets_repeats_through():
    notifier = Notifier(throttle_seconds=0)

    notifier.notify(Notification("T", "same"))
    notifier.notify(Notification("T", "same"))

    assert len(notifier.recent()) == 2
