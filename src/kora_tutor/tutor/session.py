"""
In-memory session store.

Each session owns one Conversation. Sessions are created on first use and
destroyed when ended; nothing is persisted.
"""

import logging
from typing import Optional

from kora_tutor.tutor.types import Conversation

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Maps session ids to conversations.

    Usage:
        store = SessionStore()
        conversation = store.get_or_create("abc")
        ...
        store.end("abc")
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Conversation] = {}

    def get(self, session_id: str) -> Optional[Conversation]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: Optional[str] = None) -> Conversation:
        """Return the session's conversation, creating it if needed."""
        if session_id and session_id in self._sessions:
            return self._sessions[session_id]

        conversation = Conversation(session_id=session_id) if session_id else Conversation()
        self._sessions[conversation.session_id] = conversation
        logger.debug(f"Created session {conversation.session_id}")
        return conversation

    def end(self, session_id: str) -> bool:
        """Destroy a session. Returns False if it did not exist."""
        removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.debug(f"Ended session {session_id} ({len(removed)} turns)")
        return removed is not None

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
