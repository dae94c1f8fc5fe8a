"""Tests for ConversationService business rules."""

import uuid
from datetime import UTC, datetime

import pytest

from parley.core.errors import (
    ConflictError,
    ErrorKind,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from parley.models import ParticipantRole


def _roles(details):
    return {p.user_id: p.role for p in details.conversation.participants}


@pytest.mark.asyncio
async def test_creator_becomes_admin_and_others_members(conversation_service, alice, bob, carol):
    details = await conversation_service.create_conversation(
        alice.id, [bob.id, carol.id], title="Team", is_group=True
    )

    assert details.conversation.title == "Team"
    assert details.conversation.is_group is True
    assert details.conversation.created_by == alice.id
    assert details.last_message is None
    assert _roles(details) == {
        alice.id: ParticipantRole.ADMIN.value,
        bob.id: ParticipantRole.MEMBER.value,
        carol.id: ParticipantRole.MEMBER.value,
    }


@pytest.mark.asyncio
async def test_creator_and_duplicates_are_collapsed(conversation_service, alice, bob):
    details = await conversation_service.create_conversation(alice.id, [bob.id, alice.id, bob.id])

    assert len(details.conversation.participants) == 2
    assert _roles(details)[alice.id] == ParticipantRole.ADMIN.value


@pytest.mark.asyncio
async def test_create_requires_participants(conversation_service, alice):
    with pytest.raises(ValidationError) as exc_info:
        await conversation_service.create_conversation(alice.id, [])
    assert exc_info.value.kind is ErrorKind.VALIDATION


@pytest.mark.asyncio
async def test_create_with_unknown_user_persists_nothing(
    conversation_service, alice, bob, notifier
):
    with pytest.raises(NotFoundError):
        await conversation_service.create_conversation(alice.id, [bob.id, uuid.uuid4()])

    assert await conversation_service.list_conversations(alice.id) == []
    assert notifier.events == []


@pytest.mark.asyncio
async def test_get_conversation_visibility(conversation_service, alice, bob, carol):
    details = await conversation_service.create_conversation(alice.id, [bob.id])
    conversation_id = details.conversation.id

    fetched = await conversation_service.get_conversation(conversation_id, bob.id)
    assert fetched.conversation.id == conversation_id

    with pytest.raises(ForbiddenError):
        await conversation_service.get_conversation(conversation_id, carol.id)
    with pytest.raises(NotFoundError):
        await conversation_service.get_conversation(uuid.uuid4(), alice.id)


@pytest.mark.asyncio
async def test_list_is_ordered_by_latest_activity(
    conversation_service, message_service, alice, bob, carol
):
    first = await conversation_service.create_conversation(alice.id, [bob.id])
    second = await conversation_service.create_conversation(alice.id, [carol.id])

    # Newest conversation first while neither has messages.
    listed = await conversation_service.list_conversations(alice.id)
    assert [d.conversation.id for d in listed] == [second.conversation.id, first.conversation.id]

    message = await message_service.send_message(first.conversation.id, bob.id, "ping")
    listed = await conversation_service.list_conversations(alice.id)
    assert [d.conversation.id for d in listed] == [first.conversation.id, second.conversation.id]
    assert listed[0].last_message.id == message.id
    assert listed[1].last_message is None

    # Carol only sees the conversation she belongs to.
    carol_view = await conversation_service.list_conversations(carol.id)
    assert [d.conversation.id for d in carol_view] == [second.conversation.id]


@pytest.mark.asyncio
async def test_admin_adds_participant(conversation_service, alice, bob, carol, notifier):
    details = await conversation_service.create_conversation(alice.id, [bob.id], is_group=True)
    conversation_id = details.conversation.id

    updated = await conversation_service.add_participant(conversation_id, carol.id, alice.id)

    assert _roles(updated)[carol.id] == ParticipantRole.MEMBER.value
    event = notifier.events[-1]
    assert event.type.value == "participant.added"
    assert event.recipients == frozenset({bob.id, carol.id})


@pytest.mark.asyncio
async def test_member_cannot_add_participant(conversation_service, alice, bob, carol):
    details = await conversation_service.create_conversation(alice.id, [bob.id])

    with pytest.raises(ForbiddenError):
        await conversation_service.add_participant(details.conversation.id, carol.id, bob.id)


@pytest.mark.asyncio
async def test_add_participant_errors(conversation_service, alice, bob, carol):
    details = await conversation_service.create_conversation(alice.id, [bob.id])
    conversation_id = details.conversation.id

    with pytest.raises(NotFoundError):
        await conversation_service.add_participant(uuid.uuid4(), carol.id, alice.id)
    with pytest.raises(NotFoundError):
        await conversation_service.add_participant(conversation_id, uuid.uuid4(), alice.id)
    with pytest.raises(ConflictError) as exc_info:
        await conversation_service.add_participant(conversation_id, bob.id, alice.id)
    assert exc_info.value.kind is ErrorKind.CONFLICT


@pytest.mark.asyncio
async def test_non_participant_cannot_add(conversation_service, alice, bob, carol, make_user):
    details = await conversation_service.create_conversation(alice.id, [bob.id])
    dave = make_user("Dave")

    with pytest.raises(ForbiddenError):
        await conversation_service.add_participant(details.conversation.id, dave.id, carol.id)


@pytest.mark.asyncio
async def test_member_may_leave(conversation_service, alice, bob, carol, notifier):
    details = await conversation_service.create_conversation(alice.id, [bob.id, carol.id])
    conversation_id = details.conversation.id

    await conversation_service.remove_participant(conversation_id, bob.id, bob.id)

    with pytest.raises(ForbiddenError):
        await conversation_service.get_conversation(conversation_id, bob.id)
    event = notifier.events[-1]
    assert event.type.value == "participant.removed"
    assert event.recipients == frozenset({alice.id, carol.id})


@pytest.mark.asyncio
async def test_member_cannot_remove_others(conversation_service, alice, bob, carol):
    details = await conversation_service.create_conversation(alice.id, [bob.id, carol.id])

    with pytest.raises(ForbiddenError):
        await conversation_service.remove_participant(details.conversation.id, carol.id, bob.id)


@pytest.mark.asyncio
async def test_admin_removes_member_and_removed_user_is_notified(
    conversation_service, alice, bob, carol, notifier
):
    details = await conversation_service.create_conversation(alice.id, [bob.id, carol.id])
    conversation_id = details.conversation.id

    await conversation_service.remove_participant(conversation_id, carol.id, alice.id)

    remaining = await conversation_service.get_conversation(conversation_id, alice.id)
    assert set(_roles(remaining)) == {alice.id, bob.id}
    assert notifier.events[-1].recipients == frozenset({bob.id, carol.id})


@pytest.mark.asyncio
async def test_remove_missing_participant(conversation_service, alice, bob, carol):
    details = await conversation_service.create_conversation(alice.id, [bob.id])

    with pytest.raises(NotFoundError):
        await conversation_service.remove_participant(details.conversation.id, carol.id, alice.id)
    with pytest.raises(NotFoundError):
        await conversation_service.remove_participant(uuid.uuid4(), alice.id, alice.id)


@pytest.mark.asyncio
async def test_last_admin_may_leave(conversation_service, alice, bob):
    details = await conversation_service.create_conversation(alice.id, [bob.id])
    conversation_id = details.conversation.id

    await conversation_service.remove_participant(conversation_id, alice.id, alice.id)

    remaining = await conversation_service.get_conversation(conversation_id, bob.id)
    assert _roles(remaining) == {bob.id: ParticipantRole.MEMBER.value}


@pytest.mark.asyncio
async def test_create_notifies_everyone_but_creator(conversation_service, alice, bob, carol, notifier):
    await conversation_service.create_conversation(alice.id, [bob.id, carol.id])

    assert notifier.types() == ["conversation.created"]
    assert notifier.events[0].recipients == frozenset({bob.id, carol.id})
    assert "conversation" in notifier.events[0].payload


@pytest.mark.asyncio
async def test_list_breaks_timestamp_ties_by_latest_message(
    mocker, conversation_service, message_service, alice, bob, carol, make_user
):
    """Within one clock tick the conversation with the newer message comes first."""
    tick = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    mocker.patch("parley.repositories.conversation_repo.utcnow", return_value=tick)
    mocker.patch("parley.repositories.message_repo.utcnow", return_value=tick)
    dave = make_user("Dave")

    first = await conversation_service.create_conversation(alice.id, [bob.id])
    second = await conversation_service.create_conversation(alice.id, [carol.id])
    quiet = await conversation_service.create_conversation(alice.id, [dave.id])
    await message_service.send_message(first.conversation.id, alice.id, "older")
    await message_service.send_message(second.conversation.id, alice.id, "newer")

    listed = await conversation_service.list_conversations(alice.id)

    assert [d.conversation.id for d in listed] == [
        second.conversation.id,
        first.conversation.id,
        quiet.conversation.id,
    ]
    assert [d.last_message.content if d.last_message else None for d in listed] == [
        "newer",
        "older",
        None,
    ]
