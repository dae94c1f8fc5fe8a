# src/parley/models/message.py
"""Models describing messages exchanged inside a conversation."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parley.db.session import Base
from parley.db.time import utcnow

from .user import User

# Content written over a message when its sender deletes it.
DELETED_CONTENT = "[deleted]"


class MessageStatus(str, Enum):
    """Delivery status stored on each message."""

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class Message(Base):
    """A message posted by a participant.

    The autoincrementing ``id`` is the authoritative ordering key: a message
    created later always has a greater id, regardless of timestamp resolution.
    """

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_id_id", "conversation_id", "id"),
        Index("ix_messages_sender_id", "sender_id"),
        # Never reuse rowids on SQLite so ids stay strictly increasing.
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Nullable: the sender's account may be removed after the message was sent.
    sender_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=MessageStatus.SENT.value,
    )
    status_timestamps: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    sender: Mapped[User | None] = relationship("User", lazy="joined")

    @property
    def is_deleted(self) -> bool:
        """Return True once the sender has soft-deleted this message."""
        return self.content == DELETED_CONTENT
