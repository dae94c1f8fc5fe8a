"""Conversation rules: creation, visibility and membership changes."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from parley.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from parley.models.conversation import Conversation, Participant
from parley.models.message import Message
from parley.repositories.conversation_repo import ConversationRepository
from parley.repositories.message_repo import MessageRepository
from parley.repositories.user_repo import UserRepository
from parley.schemas.conversation import ConversationOut, ParticipantOut
from parley.schemas.message import LastMessageOut
from parley.services.notifier import EventType, NotificationEvent, Notifier, NullNotifier

__all__ = ["ConversationDetails", "ConversationService", "to_conversation_out"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationDetails:
    """A conversation together with its newest message, if any."""

    conversation: Conversation
    last_message: Message | None = None


class ConversationService:
    """Public contract for conversation and participant operations.

    Every failure is raised as a :mod:`parley.core.errors` domain error.
    Notifications are published only after the write has been committed.
    """

    def __init__(
        self,
        conversations: ConversationRepository,
        messages: MessageRepository,
        users: UserRepository,
        notifier: Notifier | None = None,
    ) -> None:
        self.conversations = conversations
        self.messages = messages
        self.users = users
        self.notifier = notifier or NullNotifier()

    async def create_conversation(
        self,
        creator_id: uuid.UUID,
        participant_ids: Sequence[uuid.UUID],
        title: str | None = None,
        is_group: bool = False,
    ) -> ConversationDetails:
        """Create a conversation whose admin is the creator.

        Args:
            creator_id: Authenticated user creating the conversation.
            participant_ids: Other members; the creator is added if omitted.
            title: Optional display title.
            is_group: Whether this is a group conversation.

        Raises:
            ValidationError: If ``participant_ids`` is empty.
            NotFoundError: If any referenced user does not exist.
        """
        if not participant_ids:
            raise ValidationError("participantIds cannot be empty")

        member_ids = list(dict.fromkeys([creator_id, *participant_ids]))
        missing = set(member_ids) - self.users.existing_ids(member_ids)
        if missing:
            logger.debug("Rejected conversation with unknown users: %s", sorted(map(str, missing)))
            raise NotFoundError("One or more users not found")

        conversation = self.conversations.create(
            creator_id=creator_id,
            participant_ids=member_ids,
            title=title,
            is_group=is_group,
        )
        logger.info(
            "Conversation %s created by %s with %d participants",
            conversation.id,
            creator_id,
            len(member_ids),
        )

        details = ConversationDetails(conversation=conversation, last_message=None)
        await self._publish(
            EventType.CONVERSATION_CREATED,
            conversation.id,
            recipients=member_ids,
            actor_id=creator_id,
            payload={"conversation": _dump(details)},
        )
        return details

    async def get_conversation(
        self,
        conversation_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> ConversationDetails:
        """Return a conversation visible to ``requester_id``.

        Raises:
            NotFoundError: If the conversation does not exist.
            ForbiddenError: If the requester is not a participant.
        """
        conversation = self._require_conversation(conversation_id)
        if not _has_member(conversation.participants, requester_id):
            raise ForbiddenError("User is not a participant of this conversation")
        return ConversationDetails(
            conversation=conversation,
            last_message=self.messages.latest_for(conversation.id),
        )

    async def list_conversations(self, user_id: uuid.UUID) -> list[ConversationDetails]:
        """Return the user's conversations, most recently active first."""
        return [
            ConversationDetails(conversation=conversation, last_message=last_message)
            for conversation, last_message in self.conversations.list_for_user(user_id)
        ]

    async def add_participant(
        self,
        conversation_id: uuid.UUID,
        user_id: uuid.UUID,
        acting_user_id: uuid.UUID,
    ) -> ConversationDetails:
        """Add ``user_id`` as a member; only admins may do this.

        Raises:
            NotFoundError: If the conversation or the target user does not exist.
            ForbiddenError: If the acting user is not an admin.
            ConflictError: If the user is already a participant.
        """
        self._require_conversation(conversation_id)
        actor = self.conversations.get_participant(conversation_id, acting_user_id)
        if actor is None or not actor.is_admin:
            raise ForbiddenError("Only admins can add participants")

        if not self.users.exists(user_id):
            raise NotFoundError("User not found")

        if self.conversations.get_participant(conversation_id, user_id) is not None:
            raise ConflictError("User is already a participant")

        self.conversations.add_participant(conversation_id, user_id)
        logger.info("User %s added to conversation %s by %s", user_id, conversation_id, acting_user_id)

        details = await self.get_conversation(conversation_id, acting_user_id)
        await self._publish(
            EventType.PARTICIPANT_ADDED,
            conversation_id,
            recipients=[p.user_id for p in details.conversation.participants],
            actor_id=acting_user_id,
            payload={"userId": str(user_id), "conversation": _dump(details)},
        )
        return details

    async def remove_participant(
        self,
        conversation_id: uuid.UUID,
        user_id: uuid.UUID,
        acting_user_id: uuid.UUID,
    ) -> None:
        """Remove a participant.

        Anyone may remove themselves; removing someone else requires the admin
        role. Removing the last admin or the last participant is permitted.

        Raises:
            NotFoundError: If the conversation does not exist or the target is
                not a participant.
            ForbiddenError: If a non-admin tries to remove someone else.
        """
        self._require_conversation(conversation_id)

        if user_id != acting_user_id:
            actor = self.conversations.get_participant(conversation_id, acting_user_id)
            if actor is None or not actor.is_admin:
                raise ForbiddenError("Only admins can remove other participants")

        if not self.conversations.remove_participant(conversation_id, user_id):
            raise NotFoundError("Participant not found in this conversation")
        logger.info(
            "User %s removed from conversation %s by %s", user_id, conversation_id, acting_user_id
        )

        remaining = self.conversations.participant_ids(conversation_id)
        await self._publish(
            EventType.PARTICIPANT_REMOVED,
            conversation_id,
            recipients=[*remaining, user_id],
            actor_id=acting_user_id,
            payload={"userId": str(user_id)},
        )

    def _require_conversation(self, conversation_id: uuid.UUID) -> Conversation:
        conversation = self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    async def _publish(
        self,
        event_type: EventType,
        conversation_id: uuid.UUID,
        *,
        recipients: Iterable[uuid.UUID],
        actor_id: uuid.UUID,
        payload: dict,
    ) -> None:
        await self.notifier.publish(
            NotificationEvent(
                type=event_type,
                conversation_id=conversation_id,
                recipients=frozenset(recipients) - {actor_id},
                payload=payload,
            )
        )


def _has_member(participants: Iterable[Participant], user_id: uuid.UUID) -> bool:
    return any(p.user_id == user_id for p in participants)


def to_conversation_out(details: ConversationDetails) -> ConversationOut:
    """Convert a conversation and its latest message to an API schema."""
    conversation = details.conversation
    return ConversationOut(
        id=conversation.id,
        title=conversation.title,
        is_group=conversation.is_group,
        created_by=conversation.created_by,
        created_at=conversation.created_at,
        participants=[ParticipantOut.model_validate(p) for p in conversation.participants],
        last_message=(
            LastMessageOut.model_validate(details.last_message)
            if details.last_message is not None
            else None
        ),
    )


def _dump(details: ConversationDetails) -> dict:
    return to_conversation_out(details).model_dump(mode="json", by_alias=True)
