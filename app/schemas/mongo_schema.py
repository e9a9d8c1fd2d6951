# app/schemas/mongo_schema.py

from datetime import datetime

from pymongo import ASCENDING, DESCENDING

NOTIFICATIONS_COLLECTION = "notifications"
USERS_COLLECTION = "users"
POSTS_COLLECTION = "posts"

NOTIFICATION_INDEXES = [
    [("recipient", ASCENDING), ("createdAt", DESCENDING)],
    [("recipient", ASCENDING), ("read", ASCENDING)],
]

NOTIFICATION_MESSAGES = {
    "follow": "{username} started following you",
    "like": "{username} liked your post",
    "comment": "{username} commented on your post",
}

UNKNOWN_USERNAME = "Someone"


def render_notification_message(kind: str, username: str | None) -> str:
    """
    Renders the fixed text stored with a notification.

    Args:
        kind (str): One of ``follow``, ``like`` or ``comment``.
        username (str | None): The sender's username at publish time.

    Returns:
        str: The rendered message.
    """
    return NOTIFICATION_MESSAGES[kind].format(username=username or UNKNOWN_USERNAME)


def generate_notification_data(
    notification_id: str,
    recipient: str,
    sender: str,
    kind: str,
    message: str,
    created_at: datetime,
    subject: str | None = None,
):
    """
    Generates a notification document.

    Args:
        notification_id (str): The notification ID.
        recipient (str): The user who should see the notification.
        sender (str): The user who triggered it.
        kind (str): The notification type.
        message (str): Text rendered at creation time.
        created_at (datetime): Creation timestamp.
        subject (str, optional): The post involved, absent for follows.

    Returns:
        dict: The notification document.
    """
    return {
        "_id": notification_id,
        "recipient": recipient,
        "sender": sender,
        "type": kind,
        "post": subject,
        "message": message,
        "read": False,
        "createdAt": created_at,
    }
