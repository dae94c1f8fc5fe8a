"""Data access helpers for working with messages."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from parley.db.time import utcnow
from parley.models.message import Message, MessageStatus

__all__ = ["MessageRepository"]


class MessageRepository:
    """Thin wrapper around database access for message entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, message_id: int) -> Message | None:
        """Return a message by identifier."""
        return self.session.get(Message, message_id)

    def latest_for(self, conversation_id: uuid.UUID) -> Message | None:
        """Return the most recently created message in a conversation."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.id.desc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def list_before(
        self,
        conversation_id: uuid.UUID,
        *,
        before_id: int | None,
        limit: int,
    ) -> list[Message]:
        """Return up to ``limit`` messages with id below ``before_id``, newest first."""
        stmt = select(Message).where(Message.conversation_id == conversation_id)
        if before_id is not None:
            stmt = stmt.where(Message.id < before_id)
        stmt = stmt.order_by(Message.id.desc()).limit(limit)
        return list(self.session.scalars(stmt))

    def create(
        self,
        *,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: str,
        attachments: list[dict[str, Any]] | None,
    ) -> Message:
        """Insert a new message and return the committed ORM instance.

        The id is assigned by the database sequence, never by the caller.
        """
        now = utcnow()
        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            attachments=attachments or None,
            status=MessageStatus.SENT.value,
            status_timestamps={MessageStatus.SENT.value: now.isoformat()},
            created_at=now,
            edited_at=None,
        )
        self.session.add(message)
        self.session.commit()
        self.session.refresh(message)
        return message

    def rewrite_content(
        self,
        message: Message,
        content: str,
        *,
        edited_at: datetime | None = None,
    ) -> Message:
        """Replace a message's content and stamp ``edited_at``."""
        message.content = content
        message.edited_at = edited_at or utcnow()
        self.session.commit()
        self.session.refresh(message)
        return message
