# app/lib/event_publisher.py

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from app.lib.connection_registry import ConnectionRegistry
from app.lib.delivery_channel import ChannelSession, DeliveryChannel
from app.lib.notification_store import NotificationStore
from app.lib.post_directory import PostDirectory
from app.lib.profile_directory import ProfileDirectory
from app.models.notification import Notification, NotificationKind
from app.models.post import PostSummary
from app.models.user import SenderProfile
from app.schemas.mongo_schema import render_notification_message


class EventPublisher:
    """Turns completed domain actions into stored and pushed notifications.

    Callers await persistence only. Fan-out to live sessions runs in
    background tasks so push latency and push errors never reach the caller.
    """

    def __init__(
        self,
        store: NotificationStore,
        registry: ConnectionRegistry,
        channel: DeliveryChannel,
        profiles: ProfileDirectory,
        posts: PostDirectory,
    ):
        self.store = store
        self.registry = registry
        self.channel = channel
        self.profiles = profiles
        self.posts = posts
        self.logger = logging.getLogger(__name__)
        self._tasks: Set[asyncio.Task] = set()

    async def publish(
        self,
        recipient: str,
        sender: str,
        kind: str,
        subject: Optional[str] = None,
        rendered_message: Optional[str] = None,
    ) -> Optional[Notification]:
        """Persist a notification and push it to the recipient's live sessions.

        Returns the stored notification, or None when nothing was stored
        (self-notification or persistence failure). Never raises.
        """
        if recipient == sender:
            self.logger.debug(f"Skipping {kind} notification from user {sender} to self")
            return None

        try:
            kind = NotificationKind(kind).value
        except ValueError:
            self.logger.error(f"Unknown notification kind {kind!r} for user {recipient}")
            return None

        sender_profile = None
        if rendered_message is None:
            sender_profile = await self._resolve_sender(sender)
            rendered_message = render_notification_message(kind, sender_profile.username)

        try:
            notification = await self.store.record(
                recipient, sender, kind, rendered_message, subject=subject
            )
        except Exception as e:
            self.logger.error(
                f"Failed to record {kind} notification for user {recipient}: {e}",
                exc_info=True,
            )
            return None

        sessions = await self.registry.sessions_for(recipient)
        if not sessions:
            self.logger.debug(f"User {recipient} is offline, skipping push")
            return notification

        self._dispatch(self._fan_out_notification(notification, sessions, sender_profile))
        return notification

    async def user_followed(self, follower_id: str, followee_id: str):
        return await self.publish(followee_id, follower_id, NotificationKind.FOLLOW)

    async def post_liked(self, liker_id: str, post_author_id: str, post_id: str):
        return await self.publish(
            post_author_id, liker_id, NotificationKind.LIKE, subject=post_id
        )

    async def post_commented(self, commenter_id: str, post_author_id: str, post_id: str):
        return await self.publish(
            post_author_id, commenter_id, NotificationKind.COMMENT, subject=post_id
        )

    async def broadcast_read_state(
        self,
        user_id: str,
        notification_ids: Iterable[str],
        all_read: bool = False,
    ) -> None:
        """Tell every live session of ``user_id`` which notifications became read.

        Only ids whose flag actually changed are sent. The event carries no
        unread count: a push dispatched after the write would otherwise be
        undone by a count taken before it.
        """
        sessions = await self.registry.sessions_for(user_id)
        if not sessions:
            return
        event = {
            "type": "notifications_read",
            "data": {"notificationIds": list(notification_ids), "all": all_read},
        }
        self._dispatch(self._fan_out(sessions, event))

    async def wait_for_deliveries(self, timeout: Optional[float] = None) -> int:
        """Wait for in-flight fan-outs.

        With a ``timeout``, fan-outs still running when it expires are
        cancelled. Returns the number of cancelled fan-outs.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            pending = {task for task in self._tasks if not task.done()}
            if not pending:
                return 0
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                break
            await asyncio.wait(pending, timeout=remaining)

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self.logger.warning(f"Cancelled {len(pending)} fan-outs still running after {timeout}s")
        return len(pending)

    def _dispatch(self, coroutine) -> asyncio.Task:
        task = asyncio.create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _resolve_sender(self, user_id: str) -> SenderProfile:
        try:
            return await self.profiles.get_profile(user_id)
        except Exception as e:
            self.logger.warning(f"Could not resolve sender {user_id}: {e}")
            return SenderProfile(user_id=user_id)

    async def _resolve_post(self, post_id: Optional[str]) -> Optional[PostSummary]:
        try:
            return await self.posts.get_post(post_id)
        except Exception as e:
            self.logger.warning(f"Could not resolve post {post_id}: {e}")
            return PostSummary(post_id=post_id)

    async def _fan_out_notification(
        self,
        notification: Notification,
        sessions: Set[ChannelSession],
        sender_profile: Optional[SenderProfile],
    ) -> None:
        if sender_profile is None:
            sender_profile = await self._resolve_sender(notification.sender)
        post = None
        if notification.subject is not None:
            post = await self._resolve_post(notification.subject)

        event = {
            "type": "notification",
            "data": notification.to_payload(sender_profile, post),
        }
        delivered = await self._fan_out(sessions, event)
        self.logger.info(
            f"Notification {notification.id} pushed to {delivered}/{len(sessions)} "
            f"sessions of user {notification.recipient}"
        )

    async def _fan_out(self, sessions: Iterable[ChannelSession], event: Dict[str, Any]) -> int:
        sessions = list(sessions)
        results: List[bool] = await asyncio.gather(
            *(self._push_one(session, event) for session in sessions)
        )
        return sum(results)

    async def _push_one(self, session: ChannelSession, event: Dict[str, Any]) -> bool:
        try:
            return await self.channel.push(session, event)
        except Exception as e:
            self.logger.warning(
                f"Push of {event.get('type')} to session {session.session_id} failed: {e}"
            )
            return False
