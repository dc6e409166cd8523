"""
Service for chat history and conversation sessions.
"""
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from models.chat import ChatMessage, ChatSession, Role, utc_now
from utils.prompts import WELCOME_MESSAGE

logger = logging.getLogger(__name__)

def create_new_session() -> ChatSession:
    """Start a session seeded with the assistant's welcome message."""
    now = utc_now()
    welcome = ChatMessage(id="welcome", role="assistant", content=WELCOME_MESSAGE, timestamp=now)
    return ChatSession(messages=(welcome,), created_at=now, updated_at=now)

def add_message_to_session(session: ChatSession, message: ChatMessage) -> ChatSession:
    """Return a new session with the message appended; the input is not modified."""
    return session.model_copy(update={
        "messages": session.messages + (message,),
        "updated_at": utc_now()
    })

class ConversationService:
    """Append-only chat history store."""

    def __init__(self):
        """Initialize the conversation service."""
        logger.info("Initializing conversation service")

        # In-memory history store - would be replaced with a database table in production
        self._records: List[Dict[str, Any]] = []

    async def save_chat_message(self,
                                user_id: str,
                                session_id: str,
                                role: Role,
                                message: str,
                                timestamp: Optional[datetime] = None):
        """
        Append one chat turn.

        Args:
            user_id: The user identifier
            session_id: The session identifier
            role: "user" or "assistant"
            message: Message text
            timestamp: When the message was sent (default: now)
        """
        if role not in ("user", "assistant"):
            raise ValueError(f"Invalid role: {role}")

        self._records.append({
            "user_id": user_id,
            "session_id": session_id,
            "role": role,
            "message": message,
            "timestamp": timestamp or utc_now()
        })
        logger.debug(f"Saved {role} message for session: {session_id}")

    async def get_recent_history(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Get the most recent turns of a user across sessions.

        Returns:
            Up to limit turns as {role, content, timestamp}, oldest first
        """
        records = [r for r in self._records if r["user_id"] == user_id]
        recent = sorted(records, key=lambda r: r["timestamp"])[-limit:] if limit > 0 else []
        return [
            {"role": r["role"], "content": r["message"], "timestamp": r["timestamp"]}
            for r in recent
        ]

    async def get_session_messages(self, session_id: str) -> List[Dict[str, Any]]:
        """All stored turns of a session, oldest first."""
        records = [r for r in self._records if r["session_id"] == session_id]
        return sorted(records, key=lambda r: r["timestamp"])
