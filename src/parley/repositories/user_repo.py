"""Read-only access to the user directory."""
from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from parley.models.user import User

__all__ = ["UserRepository"]


class UserRepository:
    """Lookups against identities owned by the account service."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, user_id: uuid.UUID) -> User | None:
        """Return a user by identifier."""
        return self.session.get(User, user_id)

    def exists(self, user_id: uuid.UUID) -> bool:
        """Return True if the user is known to the directory."""
        stmt = select(User.id).where(User.id == user_id)
        return self.session.execute(stmt).first() is not None

    def existing_ids(self, user_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        """Return the subset of ``user_ids`` that exist."""
        wanted = set(user_ids)
        if not wanted:
            return set()
        stmt = select(User.id).where(User.id.in_(wanted))
        return set(self.session.scalars(stmt))
