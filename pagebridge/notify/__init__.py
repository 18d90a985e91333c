"""User-facing notifications."""
from pagebridge.notify.sink import (
    Notification,
    NotificationLevel,
    NotificationSink,
    RichNotificationSink,
    sanitize_for_display,
)

__all__ = [
    "Notification",
    "NotificationLevel",
    "NotificationSink",
    "RichNotificationSink",
    "sanitize_for_display",
]
