# app/lib/exceptions.py


class NotificationError(Exception):
    """Base class for notification service errors."""


class InvalidNotificationError(NotificationError, ValueError):
    """A notification is missing required fields or has an unknown kind."""


class NotificationNotFoundError(NotificationError):
    def __init__(self, notification_id: str):
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class NotificationForbiddenError(NotificationError):
    def __init__(self, notification_id: str, requester: str):
        super().__init__(
            f"User {requester} is not the recipient of notification {notification_id}"
        )
        self.notification_id = notification_id
        self.requester = requester


class ChannelError(Exception):
    """Base class for delivery channel errors. Always scoped to one session."""


class SessionClosedError(ChannelError):
    pass


class InvalidJoinError(ChannelError, ValueError):
    pass
