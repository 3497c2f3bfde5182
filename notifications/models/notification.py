from dataclasses import dataclass
from typing import Callable, Literal, Optional

Severity = Literal['info', 'success', 'warning', 'error']
ToastMode = Literal['auto', 'sticky']


@dataclass
class Notification:
    title: str
    message: str
    severity: Severity = 'info'
    source: str = 'System'
    toast_mode: Optional[ToastMode] = None
    toast_duration_ms: Optional[int] = None


# The single notification channel services receive through their constructor.
Notify = Callable[[Notification], None]


def discard(note: Notification) -> None:
    """Notification sink used when a caller does not care about toasts."""
