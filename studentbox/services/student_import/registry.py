"""In-process registry of import sessions, one per user."""

from typing import Callable, Optional

from .errors import InvalidTransitionError
from .session import ImportSession


class ImportSessionRegistry:
    """Hands out the import session of each user.

    Sessions live in memory only; a server restart starts everyone over.
    """

    def __init__(self, factory: Optional[Callable[[], ImportSession]] = None):
        self._factory = factory or ImportSession
        self._sessions: dict[str, ImportSession] = {}

    def get(self, user_id: str) -> ImportSession:
        """Return the user's session, creating it on first use."""
        session = self._sessions.get(user_id)
        if session is None:
            session = self._factory()
            self._sessions[user_id] = session
        return session

    def peek(self, user_id: str) -> Optional[ImportSession]:
        return self._sessions.get(user_id)

    def discard(self, user_id: str) -> None:
        """Forget the user's session.

        Raises:
            InvalidTransitionError: If that session is importing.
        """
        session = self._sessions.get(user_id)
        if session is not None and session.is_importing:
            raise InvalidTransitionError("Cannot discard a session while it is importing")
        self._sessions.pop(user_id, None)

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


import_sessions = ImportSessionRegistry()
