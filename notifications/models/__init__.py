from .notification import Notification, Notify, Severity, ToastMode, discard

__all__ = ["Notification", "Notify", "Severity", "ToastMode", "discard"]
