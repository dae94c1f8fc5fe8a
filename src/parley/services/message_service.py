"""Message rules: authorship, ordering, pagination and soft deletion."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from parley.core.errors import ForbiddenError, NotFoundError, ValidationError
from parley.core.settings import settings
from parley.models.message import DELETED_CONTENT, Message
from parley.repositories.conversation_repo import ConversationRepository
from parley.repositories.message_repo import MessageRepository
from parley.schemas.message import MessageOut
from parley.services.cursor import MAX_CURSOR_VALUE, decode_cursor, encode_cursor
from parley.services.notifier import EventType, NotificationEvent, Notifier, NullNotifier

__all__ = ["MessagePage", "MessageService", "to_message_out"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessagePage:
    """One page of history, newest first."""

    messages: list[Message]
    next_cursor: str | None
    has_more: bool


class MessageService:
    """Public contract for sending, reading, editing and deleting messages."""

    def __init__(
        self,
        messages: MessageRepository,
        conversations: ConversationRepository,
        notifier: Notifier | None = None,
        *,
        default_limit: int | None = None,
        max_limit: int | None = None,
    ) -> None:
        self.messages = messages
        self.conversations = conversations
        self.notifier = notifier or NullNotifier()
        self.default_limit = default_limit or settings.messages_default_limit
        self.max_limit = max_limit or settings.messages_max_limit

    async def send_message(
        self,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: str,
        attachments: list[Mapping[str, Any]] | None = None,
    ) -> Message:
        """Post a message as ``sender_id``.

        Raises:
            ValidationError: If the content is blank or attachments are malformed.
            ForbiddenError: If the sender is not a participant.
        """
        text = _clean_content(content)
        attachment_list = _clean_attachments(attachments)
        self._require_participant(conversation_id, sender_id)

        message = self.messages.create(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=text,
            attachments=attachment_list,
        )
        logger.debug("Message %d sent to conversation %s", message.id, conversation_id)

        await self._publish(EventType.MESSAGE_CREATED, message, actor_id=sender_id)
        return message

    async def get_messages(
        self,
        conversation_id: uuid.UUID,
        requester_id: uuid.UUID,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> MessagePage:
        """Return the page of messages strictly older than ``cursor``.

        Raises:
            ValidationError: If ``limit`` is out of range or the cursor is malformed.
            ForbiddenError: If the requester is not a participant.
        """
        if limit is None:
            limit = self.default_limit
        if isinstance(limit, bool) or not 1 <= limit <= self.max_limit:
            raise ValidationError(f"Limit must be between 1 and {self.max_limit}")
        before_id = decode_cursor(cursor) if cursor is not None else None

        self._require_participant(conversation_id, requester_id)

        rows = self.messages.list_before(conversation_id, before_id=before_id, limit=limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = encode_cursor(page[-1].id) if has_more else None
        return MessagePage(messages=page, next_cursor=next_cursor, has_more=has_more)

    async def get_message(self, message_id: int, requester_id: uuid.UUID) -> Message:
        """Return one message if the requester can see its conversation."""
        message = self._require_message(message_id)
        self._require_participant(message.conversation_id, requester_id)
        return message

    async def update_message(
        self,
        message_id: int,
        requester_id: uuid.UUID,
        content: str,
    ) -> Message:
        """Replace the content of the requester's own message.

        Raises:
            ValidationError: If the new content is blank.
            NotFoundError: If the message does not exist.
            ForbiddenError: If the requester did not send the message.
        """
        text = _clean_content(content)
        message = self._require_own_message(message_id, requester_id, "update")

        message = self.messages.rewrite_content(message, text)
        logger.info("Message %d edited by %s", message.id, requester_id)

        await self._publish(EventType.MESSAGE_UPDATED, message, actor_id=requester_id)
        return message

    async def delete_message(self, message_id: int, requester_id: uuid.UUID) -> Message:
        """Soft-delete the requester's own message.

        The row is kept with tombstone content. Repeating the call leaves the
        same content but refreshes ``edited_at``.

        Raises:
            NotFoundError: If the message does not exist.
            ForbiddenError: If the requester did not send the message.
        """
        message = self._require_own_message(message_id, requester_id, "delete")

        message = self.messages.rewrite_content(message, DELETED_CONTENT)
        logger.info("Message %d deleted by %s", message.id, requester_id)

        await self._publish(EventType.MESSAGE_DELETED, message, actor_id=requester_id)
        return message

    def _require_participant(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> None:
        if self.conversations.get_participant(conversation_id, user_id) is None:
            raise ForbiddenError("User is not a participant in this conversation")

    def _require_message(self, message_id: int) -> Message:
        message = None
        if 0 < message_id <= MAX_CURSOR_VALUE:
            message = self.messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        return message

    def _require_own_message(self, message_id: int, requester_id: uuid.UUID, action: str) -> Message:
        message = self._require_message(message_id)
        if message.sender_id != requester_id:
            raise ForbiddenError(f"User is not authorized to {action} this message")
        return message

    async def _publish(self, event_type: EventType, message: Message, *, actor_id: uuid.UUID) -> None:
        recipients = self.conversations.participant_ids(message.conversation_id)
        await self.notifier.publish(
            NotificationEvent(
                type=event_type,
                conversation_id=message.conversation_id,
                recipients=frozenset(recipients) - {actor_id},
                payload={"message": to_message_out(message).model_dump(mode="json", by_alias=True)},
            )
        )


def _clean_content(content: str | None) -> str:
    text = content.strip() if isinstance(content, str) else ""
    if not text:
        raise ValidationError("content is required and cannot be empty")
    return text


def _clean_attachments(
    attachments: Iterable[Mapping[str, Any]] | None,
) -> list[dict[str, Any]] | None:
    if attachments is None:
        return None
    if not isinstance(attachments, list) or not all(
        isinstance(item, Mapping) for item in attachments
    ):
        raise ValidationError("attachments must be an array of objects")
    return [dict(item) for item in attachments] or None


def to_message_out(message: Message) -> MessageOut:
    """Convert a Message ORM instance to an API schema."""
    return MessageOut.model_validate(message)
