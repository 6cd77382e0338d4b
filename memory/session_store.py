"""Chat session store with bounded retention.

Sessions are held in memory, capped at a maximum session count (least
recently active evicted first) and a maximum message count per session
(oldest messages evicted first). Durable persistence belongs to an external
collaborator, which can use ``export_session``/``import_session``.
"""

import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import List, Optional

import msgspec
from loguru import logger

from docpilot.error_handling import SessionError
from docpilot.models import ChatMessage, ChatSession, DocumentContext


MAX_SESSIONS = 10
MAX_MESSAGES_PER_SESSION = 100


class SessionSummary(msgspec.Struct, frozen=True):
    session_id: str
    document_type: str
    user_role: str
    last_message_at: Optional[datetime]
    message_count: int


class ChatSessionStore:
    """In-memory chat session registry."""

    def __init__(
        self,
        max_sessions: int = MAX_SESSIONS,
        max_messages: int = MAX_MESSAGES_PER_SESSION
    ):
        """Initialize the store.

        Args:
            max_sessions: Maximum number of retained sessions
            max_messages: Maximum number of retained messages per session
        """
        self.max_sessions = max_sessions
        self.max_messages = max_messages
        # Least recently active first
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()
        self._decoder = msgspec.json.Decoder(ChatSession)

        logger.info(
            f"ChatSessionStore initialized (max_sessions={max_sessions}, "
            f"max_messages={max_messages})"
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _touch(self, session: ChatSession) -> None:
        self._sessions[session.session_id] = session
        self._sessions.move_to_end(session.session_id)

        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Session {evicted_id} evicted (max_sessions={self.max_sessions})")

    def create_session(
        self,
        document_context: DocumentContext,
        session_id: Optional[str] = None
    ) -> ChatSession:
        """Create a session holding a snapshot of the document context.

        Args:
            document_context: Context derived from a completed analysis
            session_id: Optional custom session ID (generates UUID if not provided)

        Returns:
            The new ChatSession
        """
        session = ChatSession(
            session_id=session_id or str(uuid.uuid4()),
            document_context=document_context,
            started_at=datetime.now(timezone.utc),
            max_messages=self.max_messages
        )
        self._touch(session)

        logger.info(
            f"New chat session created: {session.session_id}",
            document_type=document_context.document_type,
            user_role=document_context.user_role
        )
        return session

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> ChatSession:
        session = self.get_session(session_id)
        if session is None:
            raise SessionError(f"Session not found: {session_id}")
        return session

    def add_message(self, session_id: str, message: ChatMessage) -> ChatSession:
        """Append a message to a session and mark it most recently active.

        Raises:
            SessionError: If the session does not exist
        """
        session = self.require_session(session_id)
        session.append(message)
        self._touch(session)
        return session

    def mark_active(self, session_id: str) -> None:
        self._touch(self.require_session(session_id))

    def delete_session(self, session_id: str) -> bool:
        deleted = self._sessions.pop(session_id, None) is not None
        if deleted:
            logger.info(f"Session {session_id} deleted")
        return deleted

    def clear(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        logger.info(f"Cleared {count} chat sessions")
        return count

    def list_recent(self, limit: int = 5) -> List[SessionSummary]:
        """List the most recently active sessions, newest first."""
        recent = list(reversed(self._sessions.values()))[:limit]
        return [
            SessionSummary(
                session_id=session.session_id,
                document_type=session.document_context.document_type,
                user_role=session.document_context.user_role,
                last_message_at=session.last_message_at,
                message_count=len(session.messages)
            )
            for session in recent
        ]

    def export_session(self, session_id: str) -> bytes:
        """Serialize a session to JSON for external persistence."""
        return msgspec.json.encode(self.require_session(session_id))

    def import_session(self, payload: bytes) -> ChatSession:
        """Restore a session serialized by ``export_session``.

        Raises:
            SessionError: If the payload is not a valid session
        """
        try:
            session = self._decoder.decode(payload)
        except msgspec.DecodeError as e:
            raise SessionError(f"Failed to import session: {e}") from e

        session.max_messages = self.max_messages
        overflow = len(session.messages) - self.max_messages
        if overflow > 0:
            del session.messages[:overflow]

        self._touch(session)
        return session
