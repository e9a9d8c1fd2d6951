# app/lib/notification_store.py

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING

from app.lib.exceptions import (
    InvalidNotificationError,
    NotificationForbiddenError,
    NotificationNotFoundError,
)
from app.models.notification import Notification, NotificationKind, NotificationPage
from app.schemas.mongo_schema import (
    NOTIFICATION_INDEXES,
    NOTIFICATIONS_COLLECTION,
    generate_notification_data,
)

NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]


class NotificationStore:
    """Durable notification records.

    Records are append-only; the ``read`` flag is the only field ever updated
    and it only moves from false to true.
    """

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection: AsyncIOMotorCollection = database.get_collection(
            NOTIFICATIONS_COLLECTION
        )
        self.logger = logging.getLogger(__name__)
        self._last_created_at: Optional[datetime] = None

    async def ensure_indexes(self) -> None:
        for keys in NOTIFICATION_INDEXES:
            await self.collection.create_index(keys)
        self.logger.debug("Notification indexes ensured")

    def _next_created_at(self) -> datetime:
        # Mongo keeps millisecond precision; keep creation times strictly
        # increasing so records from one process list in publish order.
        now = datetime.now(timezone.utc)
        now = now.replace(microsecond=(now.microsecond // 1000) * 1000)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(milliseconds=1)
        self._last_created_at = now
        return now

    @staticmethod
    def _to_model(document: Dict[str, Any]) -> Notification:
        created_at = document.get("createdAt")
        if isinstance(created_at, datetime) and created_at.tzinfo is None:
            document = {**document, "createdAt": created_at.replace(tzinfo=timezone.utc)}
        return Notification.model_validate(document)

    async def record(
        self,
        recipient: str,
        sender: str,
        kind: str,
        message: str,
        subject: Optional[str] = None,
    ) -> Notification:
        if not recipient or not sender or not message:
            raise InvalidNotificationError(
                "recipient, sender and message are required"
            )
        try:
            kind = NotificationKind(kind).value
        except ValueError:
            raise InvalidNotificationError(f"Unknown notification kind: {kind!r}")

        notification_data = generate_notification_data(
            str(uuid.uuid4()),
            recipient,
            sender,
            kind,
            message,
            self._next_created_at(),
            subject=subject,
        )
        await self.collection.insert_one(notification_data)
        self.logger.debug(
            f"Recorded {kind} notification {notification_data['_id']} for user {recipient}"
        )
        return self._to_model(notification_data)

    async def get(self, notification_id: str) -> Notification:
        document = await self.collection.find_one({"_id": notification_id})
        if document is None:
            raise NotificationNotFoundError(notification_id)
        return self._to_model(document)

    async def list_by_recipient(
        self, recipient: str, page: int = 1, page_size: int = 20
    ) -> NotificationPage:
        """Newest-first, offset paginated. ``page`` is 1-indexed.

        Inserts between two page fetches shift the offsets of later pages.
        """
        if page < 1 or page_size < 1:
            raise InvalidNotificationError("page and page_size must be positive")

        cursor = (
            self.collection.find({"recipient": recipient})
            .sort(NEWEST_FIRST)
            .skip((page - 1) * page_size)
            .limit(page_size)
        )
        documents = await cursor.to_list(length=page_size)
        total_count = await self.collection.count_documents({"recipient": recipient})
        unread_count = await self.count_unread(recipient)

        return NotificationPage(
            items=[self._to_model(document) for document in documents],
            total_count=total_count,
            unread_count=unread_count,
        )

    async def mark_read(self, notification_id: str, requester: str) -> bool:
        """Mark one notification read. Returns whether the flag changed."""
        notification = await self.get(notification_id)
        if notification.recipient != requester:
            raise NotificationForbiddenError(notification_id, requester)
        if notification.read:
            return False

        result = await self.collection.update_one(
            {"_id": notification_id, "read": False}, {"$set": {"read": True}}
        )
        return result.modified_count > 0

    async def mark_all_read(self, recipient: str) -> int:
        return len(await self.mark_all_read_ids(recipient))

    async def mark_all_read_ids(self, recipient: str) -> List[str]:
        """Mark every unread notification of ``recipient`` read.

        Returns the ids that were unread when the call started. Notifications
        recorded after that point stay unread.
        """
        cursor = self.collection.find({"recipient": recipient, "read": False}, {"_id": 1})
        notification_ids = [document["_id"] async for document in cursor]
        if not notification_ids:
            return []

        result = await self.collection.update_many(
            {"_id": {"$in": notification_ids}, "read": False}, {"$set": {"read": True}}
        )
        self.logger.debug(
            f"Marked {result.modified_count} notifications read for user {recipient}"
        )
        return notification_ids

    async def count_unread(self, recipient: str) -> int:
        return await self.collection.count_documents(
            {"recipient": recipient, "read": False}
        )
