# app/lib/delivery_channel.py

import logging
import uuid
from asyncio import Lock
from enum import Enum
from typing import Any, Dict, Set

from fastapi import WebSocket

from app.lib.connection_registry import ConnectionRegistry
from app.lib.exceptions import InvalidJoinError, SessionClosedError


class SessionState(str, Enum):
    CONNECTED_ANONYMOUS = "connected_anonymous"
    CONNECTED_IDENTIFIED = "connected_identified"
    CLOSED = "closed"


class ChannelSession:
    """One live client connection.

    Anonymous until the first join, identified after it. Closed is terminal.
    """

    def __init__(self, websocket: WebSocket):
        self.session_id = str(uuid.uuid4())
        self.websocket = websocket
        self.state = SessionState.CONNECTED_ANONYMOUS
        self.user_ids: Set[str] = set()
        self._send_lock = Lock()

    @property
    def is_open(self) -> bool:
        return self.state != SessionState.CLOSED

    async def send(self, event: Dict[str, Any]) -> None:
        async with self._send_lock:
            await self.websocket.send_json(event)

    def __repr__(self) -> str:
        return f"ChannelSession({self.session_id}, {self.state.value})"


class DeliveryChannel:
    """Session lifecycle on top of WebSockets.

    Every session change is mirrored into the ``ConnectionRegistry``; nothing
    else writes to it.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self.logger = logging.getLogger(__name__)

    def on_connect(self, websocket: WebSocket) -> ChannelSession:
        session = ChannelSession(websocket)
        self.logger.info(f"Session {session.session_id} connected")
        return session

    async def on_join(self, session: ChannelSession, user_id: str) -> None:
        if not session.is_open:
            raise SessionClosedError(f"Session {session.session_id} is closed")
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidJoinError("join requires a non-empty userId")

        await self.registry.bind(user_id, session)
        session.user_ids.add(user_id)
        session.state = SessionState.CONNECTED_IDENTIFIED
        self.logger.info(f"User {user_id} joined with session {session.session_id}")

    async def on_disconnect(self, session: ChannelSession) -> None:
        if session.state == SessionState.CLOSED:
            return
        session.state = SessionState.CLOSED
        user_ids = await self.registry.unbind(session)
        self.logger.info(
            f"Session {session.session_id} disconnected (users: {sorted(user_ids) or 'none'})"
        )

    async def push(self, session: ChannelSession, event: Dict[str, Any]) -> bool:
        """Best-effort send. No acknowledgement is awaited.

        Returns False when the session is already closed. Transport errors
        propagate to the caller.
        """
        if not session.is_open:
            self.logger.debug(f"Skipping push to closed session {session.session_id}")
            return False
        await session.send(event)
        return True
