# app/lib/connection_registry.py

import logging
from asyncio import Lock
from typing import Dict, Hashable, Set


class ConnectionRegistry:
    """Process-local map from user id to live channel sessions.

    Sessions are lookup keys only; their lifecycle belongs to the delivery
    channel, which calls ``unbind`` when a session closes. State is not
    persisted and is empty after a restart.
    """

    def __init__(self):
        self._sessions_by_user: Dict[str, Set[Hashable]] = {}
        self._users_by_session: Dict[Hashable, Set[str]] = {}
        self._lock = Lock()
        self.logger = logging.getLogger(__name__)

    async def bind(self, user_id: str, session: Hashable) -> bool:
        """Bind ``session`` to ``user_id``. Returns False if already bound."""
        async with self._lock:
            sessions = self._sessions_by_user.setdefault(user_id, set())
            if session in sessions:
                return False
            sessions.add(session)
            self._users_by_session.setdefault(session, set()).add(user_id)
        self.logger.debug(f"Bound session {session} to user {user_id}")
        return True

    async def unbind(self, session: Hashable) -> Set[str]:
        """Remove every binding of ``session``. Returns the users it was bound to."""
        async with self._lock:
            user_ids = self._users_by_session.pop(session, set())
            for user_id in user_ids:
                sessions = self._sessions_by_user.get(user_id)
                if sessions is None:
                    continue
                sessions.discard(session)
                if not sessions:
                    del self._sessions_by_user[user_id]
        if user_ids:
            self.logger.debug(f"Unbound session {session} from users {sorted(user_ids)}")
        return user_ids

    async def sessions_for(self, user_id: str) -> Set[Hashable]:
        async with self._lock:
            return set(self._sessions_by_user.get(user_id, ()))

    async def users_for(self, session: Hashable) -> Set[str]:
        async with self._lock:
            return set(self._users_by_session.get(session, ()))

    async def online_users(self) -> Set[str]:
        async with self._lock:
            return set(self._sessions_by_user)

    async def session_count(self) -> int:
        async with self._lock:
            return len(self._users_by_session)
