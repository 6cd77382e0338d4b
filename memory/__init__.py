"""Memory package for chat session retention."""

from memory.session_store import ChatSessionStore, SessionSummary

__all__ = [
    "ChatSessionStore",
    "SessionSummary",
]
