# src/parley/models/__init__.py
"""SQLAlchemy models for the Parley service."""

from .conversation import Conversation, Participant, ParticipantRole
from .message import DELETED_CONTENT, Message, MessageStatus
from .user import User

__all__ = [
    "Conversation", "Participant", "ParticipantRole",
    "DELETED_CONTENT", "Message", "MessageStatus",
    "User",
]
