"""Data access helpers for conversations and participants."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import FlushError

from parley.core.errors import ConflictError
from parley.db.time import utcnow
from parley.models.conversation import Conversation, Participant, ParticipantRole
from parley.models.message import Message

__all__ = ["ConversationRepository"]

logger = logging.getLogger(__name__)


class ConversationRepository:
    """Persistence for conversation and participant rows.

    Each mutating method commits its own transaction, so a successful return
    means the change is durable.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, conversation_id: uuid.UUID) -> Conversation | None:
        """Return a conversation with its participants loaded."""
        stmt = (
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .options(selectinload(Conversation.participants))
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def get_participant(
        self,
        conversation_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Participant | None:
        """Return the membership row for a (conversation, user) pair."""
        return self.session.get(Participant, (conversation_id, user_id))

    def participant_ids(self, conversation_id: uuid.UUID) -> list[uuid.UUID]:
        """Return the ids of every current participant."""
        stmt = select(Participant.user_id).where(Participant.conversation_id == conversation_id)
        return list(self.session.scalars(stmt))

    def create(
        self,
        *,
        creator_id: uuid.UUID,
        participant_ids: Sequence[uuid.UUID],
        title: str | None,
        is_group: bool,
    ) -> Conversation:
        """Insert a conversation together with all of its participants.

        Args:
            creator_id: User creating the conversation; becomes the admin.
            participant_ids: Deduplicated ids of every member, creator included.
            title: Optional display title.
            is_group: Whether the conversation is a group chat.

        Returns:
            The committed conversation.

        Notes:
            Conversation and participant rows are written in one transaction;
            if any insert fails nothing is persisted.
        """
        now = utcnow()
        conversation = Conversation(
            title=title,
            is_group=is_group,
            created_by=creator_id,
            created_at=now,
        )
        conversation.participants = [
            Participant(
                user_id=user_id,
                role=(
                    ParticipantRole.ADMIN.value
                    if user_id == creator_id
                    else ParticipantRole.MEMBER.value
                ),
                joined_at=now,
            )
            for user_id in participant_ids
        ]
        self.session.add(conversation)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(conversation)
        return conversation

    def add_participant(
        self,
        conversation_id: uuid.UUID,
        user_id: uuid.UUID,
        role: ParticipantRole = ParticipantRole.MEMBER,
    ) -> Participant:
        """Insert a membership row.

        Raises:
            ConflictError: If the pair already exists, including when a
                concurrent request inserted it first.
        """
        participant = Participant(
            conversation_id=conversation_id,
            user_id=user_id,
            role=role.value,
            joined_at=utcnow(),
        )
        self.session.add(participant)
        try:
            self.session.commit()
        except (IntegrityError, FlushError) as exc:
            self.session.rollback()
            if self.get_participant(conversation_id, user_id) is not None:
                logger.debug(
                    "Participant %s already in conversation %s", user_id, conversation_id
                )
                raise ConflictError("User is already a participant") from exc
            raise
        return participant

    def remove_participant(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Delete a membership row.

        Returns:
            False when no row matched, so a concurrent removal that lost the
            race can report the participant as missing.
        """
        stmt = delete(Participant).where(
            Participant.conversation_id == conversation_id,
            Participant.user_id == user_id,
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return bool(result.rowcount)

    def list_for_user(
        self,
        user_id: uuid.UUID,
    ) -> list[tuple[Conversation, Message | None]]:
        """Return the user's conversations paired with their latest message.

        Rows are ordered by the latest message's creation time, falling back to
        the conversation's creation time, most recent first. Equal timestamps
        are broken by the latest message id, then by conversation creation.
        """
        last_ids = (
            select(
                Message.conversation_id.label("conversation_id"),
                func.max(Message.id).label("last_id"),
            )
            .group_by(Message.conversation_id)
            .subquery()
        )
        activity = func.coalesce(Message.created_at, Conversation.created_at)
        stmt = (
            select(Conversation, Message)
            .join(
                Participant,
                (Participant.conversation_id == Conversation.id)
                & (Participant.user_id == user_id),
            )
            .outerjoin(last_ids, last_ids.c.conversation_id == Conversation.id)
            .outerjoin(Message, Message.id == last_ids.c.last_id)
            .options(selectinload(Conversation.participants))
            .order_by(
                activity.desc(),
                last_ids.c.last_id.desc().nulls_last(),
                Conversation.created_at.desc(),
            )
            .execution_options(populate_existing=True)
        )
        return [(row[0], row[1]) for row in self.session.execute(stmt).all()]
