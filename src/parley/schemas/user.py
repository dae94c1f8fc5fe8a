"""User profile fields joined into conversation and message payloads."""

import uuid

from .common import ApiModel


class UserSummary(ApiModel):
    """Minimal public profile of a user."""

    id: uuid.UUID
    name: str
    email: str
    avatar_url: str | None = None
