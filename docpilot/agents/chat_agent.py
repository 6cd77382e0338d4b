"""
Document Chat Agent - follow-up questions grounded in a completed analysis.

A turn never surfaces a raw error: when generation fails after retries the
user gets a pre-written apology and generic follow-up questions.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING

from docpilot.agents.base import GenerationAgent
from docpilot.context_assembler import HISTORY_WINDOW, build_bundle
from docpilot.error_handling import InvalidRequestError
from docpilot.logging_config import get_task_logger
from docpilot.models import ChatMessage, ChatReply, ChatSession, Failed

if TYPE_CHECKING:
    from memory.session_store import ChatSessionStore


APOLOGY_RESPONSE = (
    "I apologize, but I encountered an error while processing your question. "
    "Please try again, or feel free to ask about specific aspects of your "
    "document like key terms, risks, or important dates."
)

GENERIC_FOLLOW_UPS: List[str] = [
    "What are the most important clauses I should know about?",
    "What risks should I be aware of in this document?",
    "Can you summarize the key dates and numbers?",
]

RESPONSE_PREVIEW_CHARS = 4000


def _new_message(role: str, content: str) -> ChatMessage:
    return ChatMessage(
        id=f"{role}-{uuid.uuid4().hex[:12]}",
        role=role,
        content=content,
        timestamp=datetime.now(timezone.utc)
    )


class DocumentChatAgent(GenerationAgent):
    """Answers chat turns using the session's document context."""

    TASK_NAME = "chat"

    def __init__(self, runner, validator=None, history_window: int = HISTORY_WINDOW):
        super().__init__(runner, validator)
        self.history_window = history_window

    def _fallback(self, raw_text: str) -> ChatReply:
        response = raw_text.strip()[:RESPONSE_PREVIEW_CHARS] or APOLOGY_RESPONSE
        return ChatReply(response=response, suggested_follow_ups=list(GENERIC_FOLLOW_UPS))

    @staticmethod
    def _record(
        session: ChatSession,
        message: ChatMessage,
        store: Optional["ChatSessionStore"]
    ) -> None:
        if store is None:
            session.append(message)
        else:
            store.add_message(session.session_id, message)

    async def respond(
        self,
        session: ChatSession,
        message: str,
        store: Optional["ChatSessionStore"] = None
    ) -> ChatReply:
        """Answer one user message and record both sides in the session.

        Args:
            session: Chat session holding the document context and history
            message: User's message
            store: Store holding the session; when given, both messages are
                recorded through it so the turn counts as session activity

        Returns:
            ChatReply (the static apology if generation failed)

        Raises:
            InvalidRequestError: If the message is empty
            SessionError: If a store is given and does not hold the session
        """
        if not message or not message.strip():
            raise InvalidRequestError("Message is required to send a chat message")

        message = message.strip()
        task_logger = get_task_logger(session.session_id, "DocumentChatAgent")

        # History excludes the message being answered
        bundle = build_bundle(session, message, self.history_window)
        self._record(session, _new_message("user", message), store)

        reply: Optional[ChatReply] = None
        try:
            run = await self._generate_validated(bundle.render_prompt(), ChatReply, self._fallback)
        except Exception as e:
            task_logger.error(
                "Chat turn raised unexpectedly, returning apology",
                error=str(e),
                error_type=type(e).__name__
            )
        else:
            if isinstance(run.outcome, Failed):
                task_logger.error(
                    "Chat turn failed, returning apology",
                    error_kind=run.outcome.classification.value,
                    attempts=run.attempts
                )
            else:
                reply = run.outcome.value
                if not reply.response.strip():
                    task_logger.warning("Chat reply was empty, returning apology")
                    reply = None

        if reply is None:
            reply = ChatReply(response=APOLOGY_RESPONSE, suggested_follow_ups=list(GENERIC_FOLLOW_UPS))

        self._record(session, _new_message("assistant", reply.response), store)

        task_logger.info(
            "Chat turn complete",
            response_length=len(reply.response),
            follow_ups=len(reply.suggested_follow_ups),
            message_count=len(session.messages)
        )
        return reply
