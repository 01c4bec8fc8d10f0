"""Notification domain specific exceptions."""


class NotificationError(Exception):
    """Base class for notification domain errors."""


class NotificationNotFoundError(NotificationError):
    """Raised when a notification does not exist or belongs to another user."""
