# src/parley/api/v1/endpoints/messages.py
"""Message endpoints for the Parley API."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from parley.api.v1.dependencies import CurrentUserIdDep, MessageServiceDep
from parley.schemas.common import SuccessResponse
from parley.schemas.message import (
    MessageCreate,
    MessageEnvelope,
    MessagePageOut,
    MessageUpdate,
)
from parley.services.message_service import to_message_out

router = APIRouter(tags=["messages"])


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: uuid.UUID,
    payload: MessageCreate,
    current_user_id: CurrentUserIdDep,
    service: MessageServiceDep,
) -> MessageEnvelope:
    """Send a message to a conversation the caller participates in."""
    message = await service.send_message(
        conversation_id,
        current_user_id,
        payload.content,
        payload.attachments,
    )
    return MessageEnvelope(message=to_message_out(message))


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=MessagePageOut,
)
async def get_messages(
    conversation_id: uuid.UUID,
    current_user_id: CurrentUserIdDep,
    service: MessageServiceDep,
    cursor: str | None = Query(None, description="nextCursor from the previous page"),
    limit: int | None = Query(None, description="Page size, 1-100 (default 50)"),
) -> MessagePageOut:
    """Page backwards through a conversation's history, newest first."""
    page = await service.get_messages(conversation_id, current_user_id, cursor=cursor, limit=limit)
    return MessagePageOut(
        messages=[to_message_out(m) for m in page.messages],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.get("/messages/{message_id}", response_model=MessageEnvelope)
async def get_message(
    message_id: int,
    current_user_id: CurrentUserIdDep,
    service: MessageServiceDep,
) -> MessageEnvelope:
    """Get a single message from a conversation the caller participates in."""
    message = await service.get_message(message_id, current_user_id)
    return MessageEnvelope(message=to_message_out(message))


@router.put("/messages/{message_id}", response_model=MessageEnvelope)
async def update_message(
    message_id: int,
    payload: MessageUpdate,
    current_user_id: CurrentUserIdDep,
    service: MessageServiceDep,
) -> MessageEnvelope:
    """Edit the content of the caller's own message."""
    message = await service.update_message(message_id, current_user_id, payload.content)
    return MessageEnvelope(message=to_message_out(message))


@router.delete("/messages/{message_id}", response_model=SuccessResponse)
async def delete_message(
    message_id: int,
    current_user_id: CurrentUserIdDep,
    service: MessageServiceDep,
) -> SuccessResponse:
    """Soft-delete the caller's own message."""
    await service.delete_message(message_id, current_user_id)
    return SuccessResponse()
