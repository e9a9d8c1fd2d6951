# app/lib/websocket_manager.py

import logging
from typing import Any, Dict

from pydantic import ValidationError

from app.lib.delivery_channel import ChannelSession, DeliveryChannel
from app.lib.exceptions import ChannelError, NotificationError
from app.lib.notification_manager import NotificationManager
from app.models.websocket import JoinMessage, MarkReadMessage


class WebSocketManager:
    """Handles client frames on the push channel.

    Frames are dispatched to ``handle_<type>``. Any failure is answered with
    an error frame on the same session and never reaches other sessions.
    """

    MESSAGE_TYPES = ("join", "mark_read", "mark_all_read", "ping")

    def __init__(
        self,
        channel: DeliveryChannel,
        notification_manager: NotificationManager,
    ):
        self.logger = logging.getLogger(__name__)
        self.channel = channel
        self.notification_manager = notification_manager

    async def handle_incoming_websocket_message(
        self, session: ChannelSession, data: Any
    ) -> None:
        if not isinstance(data, dict) or not isinstance(data.get("type"), str):
            await self.send_error(session, "Malformed message")
            return

        message_type = data["type"]
        self.logger.debug(
            f"Handling message type: {message_type} for session {session.session_id}"
        )
        if message_type in self.MESSAGE_TYPES:
            handler = getattr(self, f"handle_{message_type}")
        else:
            handler = self.no_incoming_websocket_message_handler_found
        try:
            await handler(session, data)
        except ValidationError as e:
            self.logger.warning(
                f"Invalid {message_type} message on session {session.session_id}: {e}"
            )
            await self.send_error(session, f"Invalid {message_type} message")
        except (ChannelError, NotificationError) as e:
            await self.send_error(session, str(e))
        except Exception as e:
            self.logger.error(f"Error handling message: {e}", exc_info=True)
            await self.send_error(session, "We could not process your message")

    async def handle_join(self, session: ChannelSession, data: Dict[str, Any]):
        message = JoinMessage.model_validate(data)
        await self.channel.on_join(session, message.user_id)
        await self.channel.push(session, {"type": "joined", "userId": message.user_id})

    async def handle_mark_read(self, session: ChannelSession, data: Dict[str, Any]):
        message = MarkReadMessage.model_validate(data)
        user_ids = self._require_identity(session)
        notification = await self.notification_manager.store.get(message.notification_id)
        # A re-identified session acts as whichever of its users is the recipient.
        requester = (
            notification.recipient if notification.recipient in user_ids else user_ids[0]
        )
        await self.notification_manager.mark_read(requester, message.notification_id)

    async def handle_mark_all_read(self, session: ChannelSession, data: Dict[str, Any]):
        for user_id in self._require_identity(session):
            await self.notification_manager.mark_all_read(user_id)

    async def handle_ping(self, session: ChannelSession, data: Dict[str, Any]):
        await self.channel.push(session, {"type": "pong"})

    async def no_incoming_websocket_message_handler_found(
        self, session: ChannelSession, data: Dict[str, Any]
    ):
        self.logger.debug(f"No message handler found for message type: {data.get('type')}")
        await self.send_error(session, "We could not process your message")

    async def send_error(self, session: ChannelSession, message: str) -> None:
        try:
            await self.channel.push(
                session, {"type": "error", "status": "error", "message": message}
            )
        except Exception as e:
            self.logger.warning(
                f"Could not send error frame to session {session.session_id}: {e}"
            )

    @staticmethod
    def _require_identity(session: ChannelSession):
        if not session.user_ids:
            raise ChannelError("Join before sending this message")
        return sorted(session.user_ids)
