"""Shared API dependencies for authentication and service construction."""

import uuid
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from parley.core.errors import UnauthorizedError
from parley.core.security import decode_access_token
from parley.core.settings import settings
from parley.db.session import get_db
from parley.repositories.conversation_repo import ConversationRepository
from parley.repositories.message_repo import MessageRepository
from parley.repositories.user_repo import UserRepository
from parley.services.conversation_service import ConversationService
from parley.services.message_service import MessageService
from parley.services.notifier import (
    ConnectionRegistry,
    Notifier,
    NullNotifier,
    RegistryNotifier,
    get_connection_registry,
)

# HTTP Bearer scheme; missing credentials are reported as UnauthorizedError below.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def resolve_user_id(token: str | None, db: Session) -> uuid.UUID:
    """Turn a bearer token into the id of an existing user.

    Args:
        token: Raw bearer token, or None if the request carried none
        db: Database session

    Returns:
        The authenticated user's id

    Raises:
        UnauthorizedError: If the token is missing, invalid, or names an
            unknown user
    """
    if not token:
        raise UnauthorizedError("Not authenticated")
    user_id = decode_access_token(token)
    if not UserRepository(db).exists(user_id):
        raise UnauthorizedError("User not found")
    return user_id


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> uuid.UUID:
    """Get the authenticated user's id from the Authorization header."""
    return resolve_user_id(credentials.credentials if credentials else None, db)


def get_registry_dep() -> ConnectionRegistry:
    """Return the registry of live realtime connections."""
    return get_connection_registry()


RegistryDep = Annotated[ConnectionRegistry, Depends(get_registry_dep)]


def get_notifier_dep(registry: RegistryDep) -> Notifier:
    """Return the notifier used by request-scoped services."""
    if not settings.realtime_enabled:
        return NullNotifier()
    return RegistryNotifier(registry)


NotifierDep = Annotated[Notifier, Depends(get_notifier_dep)]


def get_conversation_service(db: SessionDep, notifier: NotifierDep) -> ConversationService:
    """Build a conversation service bound to the request's session."""
    return ConversationService(
        conversations=ConversationRepository(db),
        messages=MessageRepository(db),
        users=UserRepository(db),
        notifier=notifier,
    )


def get_message_service(db: SessionDep, notifier: NotifierDep) -> MessageService:
    """Build a message service bound to the request's session."""
    return MessageService(
        messages=MessageRepository(db),
        conversations=ConversationRepository(db),
        notifier=notifier,
    )


# Type aliases for endpoint signatures
CurrentUserIdDep = Annotated[uuid.UUID, Depends(get_current_user_id)]
ConversationServiceDep = Annotated[ConversationService, Depends(get_conversation_service)]
MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]
