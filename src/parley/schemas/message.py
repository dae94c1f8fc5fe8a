"""Message-related Pydantic schemas."""
from __future__ import annotations

import uuid
from typing import Any

from pydantic import Field

from .common import ApiModel, MessageId, UtcDatetime
from .user import UserSummary


class MessageCreate(ApiModel):
    """Body of a send-message request."""

    content: str = Field(..., description="Message text; must not be blank")
    attachments: list[dict[str, Any]] | None = Field(
        None,
        description="Optional list of {type, url, name, size} descriptors",
    )


class MessageUpdate(ApiModel):
    """Body of an edit-message request."""

    content: str = Field(..., description="Replacement text; must not be blank")


class MessageOut(ApiModel):
    """A message joined with its sender's profile."""

    id: MessageId
    conversation_id: uuid.UUID
    sender_id: uuid.UUID | None
    content: str
    attachments: list[dict[str, Any]] | None = None
    status: str
    status_timestamps: dict[str, Any] | None = None
    created_at: UtcDatetime
    edited_at: UtcDatetime | None = None
    sender: UserSummary | None = None


class LastMessageOut(ApiModel):
    """Preview of the newest message shown alongside a conversation."""

    id: MessageId
    content: str
    created_at: UtcDatetime
    sender_id: uuid.UUID | None


class MessageEnvelope(ApiModel):
    """Response wrapper for a single message."""

    message: MessageOut


class MessagePageOut(ApiModel):
    """One page of message history, newest first."""

    messages: list[MessageOut]
    next_cursor: str | None
    has_more: bool
