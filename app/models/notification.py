# app/models/notification.py

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from app.models.post import PostSummary
from app.models.user import SenderProfile


class NotificationKind(str, Enum):
    FOLLOW = "follow"
    LIKE = "like"
    COMMENT = "comment"


class Notification(BaseModel):
    """A persisted notification as stored in the ``notifications`` collection."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    recipient: str
    sender: str
    kind: NotificationKind = Field(alias="type")
    subject: str | None = Field(default=None, alias="post")
    message: str
    read: bool = False
    created_at: datetime = Field(alias="createdAt")

    def to_payload(
        self,
        sender: SenderProfile | None = None,
        post: PostSummary | None = None,
    ) -> dict:
        """Wire shape shared by pushed and listed notifications.

        ``sender`` and ``post`` are replaced by the resolved display fields
        when given.
        """
        payload = self.model_dump(by_alias=True, mode="json")
        if sender is not None:
            payload["sender"] = sender.model_dump(by_alias=True)
        if post is not None:
            payload["post"] = post.model_dump(by_alias=True)
        return payload


class NotificationPage(BaseModel):
    items: list[Notification]
    total_count: int
    unread_count: int
