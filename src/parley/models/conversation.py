# src/parley/models/conversation.py
"""Models describing conversations and their membership."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parley.db.session import Base
from parley.db.time import utcnow

from .user import User


class ParticipantRole(str, Enum):
    """Role held by a participant inside one conversation."""

    ADMIN = "admin"
    MEMBER = "member"


class Conversation(Base):
    """A direct or group conversation.

    Immutable after creation; only its participant rows change over time.
    """

    __tablename__ = "conversations"
    __table_args__ = (
        Index("ix_conversations_created_by", "created_by"),
        Index("ix_conversations_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_group: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    participants: Mapped[list[Participant]] = relationship(
        "Participant",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Participant.joined_at",
    )


class Participant(Base):
    """Membership of one user in one conversation."""

    __tablename__ = "participants"
    __table_args__ = (
        Index("ix_participants_user_id", "user_id"),
    )

    # Composite primary key makes a duplicate (conversation, user) pair impossible.
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ParticipantRole.MEMBER.value,
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    conversation: Mapped[Conversation] = relationship("Conversation", back_populates="participants")
    user: Mapped[User] = relationship("User", lazy="joined")

    @property
    def is_admin(self) -> bool:
        """Return True when this participant may add or remove others."""
        return self.role == ParticipantRole.ADMIN.value
