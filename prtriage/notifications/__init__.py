"""Notification messages and sinks."""

from .notifier import (
    LoggingNotifier,
    NotificationMessage,
    Notifier,
    merge_error_notification,
    review_notification,
    review_request_notification,
    review_state_label,
)

__all__ = [
    "LoggingNotifier",
    "NotificationMessage",
    "Notifier",
    "merge_error_notification",
    "review_notification",
    "review_request_notification",
    "review_state_label",
]
