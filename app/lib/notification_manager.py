# app/lib/notification_manager.py

import logging
import math
from typing import Any, Dict

from app.lib.event_publisher import EventPublisher
from app.lib.notification_store import NotificationStore
from app.lib.post_directory import PostDirectory
from app.lib.profile_directory import ProfileDirectory


class NotificationManager:
    """Pull-side operations shared by the REST routes and the WebSocket handler."""

    def __init__(
        self,
        store: NotificationStore,
        profiles: ProfileDirectory,
        posts: PostDirectory,
        publisher: EventPublisher,
    ):
        self.store = store
        self.profiles = profiles
        self.posts = posts
        self.publisher = publisher
        self.logger = logging.getLogger(__name__)
        self.logger.debug("NotificationManager initialized")

    async def list_notifications(
        self, user_id: str, page: int, page_size: int
    ) -> Dict[str, Any]:
        self.logger.debug(f"Listing notifications for user {user_id} page {page}")
        result = await self.store.list_by_recipient(user_id, page, page_size)
        senders = await self.profiles.get_profiles(
            notification.sender for notification in result.items
        )
        posts = await self.posts.get_posts(
            notification.subject for notification in result.items
        )
        return {
            "items": [
                notification.to_payload(
                    senders[notification.sender], posts.get(notification.subject)
                )
                for notification in result.items
            ],
            "currentPage": page,
            "totalPages": math.ceil(result.total_count / page_size),
            "totalCount": result.total_count,
            "unreadCount": result.unread_count,
        }

    async def mark_read(self, user_id: str, notification_id: str) -> int:
        """Mark one notification read and return the fresh unread count."""
        if await self.store.mark_read(notification_id, user_id):
            await self.publisher.broadcast_read_state(user_id, [notification_id])
        return await self.store.count_unread(user_id)

    async def mark_all_read(self, user_id: str) -> int:
        """Mark everything read and return the number of notifications changed."""
        notification_ids = await self.store.mark_all_read_ids(user_id)
        if notification_ids:
            await self.publisher.broadcast_read_state(
                user_id, notification_ids, all_read=True
            )
        return len(notification_ids)

    async def unread_count(self, user_id: str) -> int:
        return await self.store.count_unread(user_id)
