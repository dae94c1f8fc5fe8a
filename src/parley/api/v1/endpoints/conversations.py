# src/parley/api/v1/endpoints/conversations.py
"""Conversation and participant endpoints for the Parley API."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from parley.api.v1.dependencies import ConversationServiceDep, CurrentUserIdDep
from parley.schemas.common import SuccessResponse
from parley.schemas.conversation import (
    ConversationCreate,
    ConversationEnvelope,
    ConversationList,
    ParticipantChange,
)
from parley.services.conversation_service import to_conversation_out

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post(
    "",
    response_model=ConversationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    payload: ConversationCreate,
    current_user_id: CurrentUserIdDep,
    service: ConversationServiceDep,
) -> ConversationEnvelope:
    """Create a conversation; the caller becomes its admin."""
    details = await service.create_conversation(
        current_user_id,
        payload.participant_ids,
        title=payload.title,
        is_group=payload.is_group,
    )
    return ConversationEnvelope(conversation=to_conversation_out(details))


@router.get("", response_model=ConversationList)
async def list_conversations(
    current_user_id: CurrentUserIdDep,
    service: ConversationServiceDep,
) -> ConversationList:
    """List the caller's conversations, most recently active first."""
    conversations = await service.list_conversations(current_user_id)
    return ConversationList(conversations=[to_conversation_out(c) for c in conversations])


@router.get("/{conversation_id}", response_model=ConversationEnvelope)
async def get_conversation(
    conversation_id: uuid.UUID,
    current_user_id: CurrentUserIdDep,
    service: ConversationServiceDep,
) -> ConversationEnvelope:
    """Get a conversation the caller participates in."""
    details = await service.get_conversation(conversation_id, current_user_id)
    return ConversationEnvelope(conversation=to_conversation_out(details))


@router.post("/{conversation_id}/participants", response_model=ConversationEnvelope)
async def add_participant(
    conversation_id: uuid.UUID,
    payload: ParticipantChange,
    current_user_id: CurrentUserIdDep,
    service: ConversationServiceDep,
) -> ConversationEnvelope:
    """Add a member to a conversation (admins only)."""
    details = await service.add_participant(conversation_id, payload.user_id, current_user_id)
    return ConversationEnvelope(conversation=to_conversation_out(details))


@router.delete("/{conversation_id}/participants", response_model=SuccessResponse)
async def remove_participant(
    conversation_id: uuid.UUID,
    payload: ParticipantChange,
    current_user_id: CurrentUserIdDep,
    service: ConversationServiceDep,
) -> SuccessResponse:
    """Remove a member; admins may remove anyone, members only themselves."""
    await service.remove_participant(conversation_id, payload.user_id, current_user_id)
    return SuccessResponse()
