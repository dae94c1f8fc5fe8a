"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ErrorResponse, SuccessResponse
from .conversation import (
    ConversationCreate,
    ConversationEnvelope,
    ConversationList,
    ConversationOut,
    ParticipantChange,
    ParticipantOut,
)
from .message import (
    LastMessageOut,
    MessageCreate,
    MessageEnvelope,
    MessageOut,
    MessagePageOut,
    MessageUpdate,
)
from .user import UserSummary

__all__ = [
    "ErrorResponse", "SuccessResponse",
    "ConversationCreate", "ConversationEnvelope", "ConversationList",
    "ConversationOut", "ParticipantChange", "ParticipantOut",
    "LastMessageOut", "MessageCreate", "MessageEnvelope", "MessageOut",
    "MessagePageOut", "MessageUpdate",
    "UserSummary",
]
