"""Conversation-related Pydantic schemas."""
from __future__ import annotations

import uuid

from pydantic import Field

from .common import ApiModel, UtcDatetime
from .message import LastMessageOut
from .user import UserSummary


class ConversationCreate(ApiModel):
    """Body of a create-conversation request."""

    participant_ids: list[uuid.UUID] = Field(
        ...,
        description="Users to include; the creator is added automatically",
    )
    title: str | None = Field(None, max_length=255)
    is_group: bool = False


class ParticipantChange(ApiModel):
    """Body of the add/remove participant requests."""

    user_id: uuid.UUID


class ParticipantOut(ApiModel):
    """Membership row joined with the member's profile."""

    user_id: uuid.UUID
    role: str
    joined_at: UtcDatetime
    user: UserSummary


class ConversationOut(ApiModel):
    """A conversation with its participants and latest message."""

    id: uuid.UUID
    title: str | None
    is_group: bool
    created_by: uuid.UUID | None
    created_at: UtcDatetime
    participants: list[ParticipantOut]
    last_message: LastMessageOut | None = None


class ConversationEnvelope(ApiModel):
    """Response wrapper for a single conversation."""

    conversation: ConversationOut


class ConversationList(ApiModel):
    """Response wrapper for the caller's conversations."""

    conversations: list[ConversationOut]
