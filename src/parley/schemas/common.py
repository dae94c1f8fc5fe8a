"""Shared Pydantic schemas and field types for API payloads."""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]

# 64-bit ids travel as decimal strings so JSON clients never lose precision.
MessageId = Annotated[int, PlainSerializer(str, return_type=str, when_used="json")]


class ApiModel(BaseModel):
    """Base model emitting camelCase keys and reading ORM attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Structured error body returned for every failed request."""

    kind: str = Field(..., description="Stable machine-readable error kind")
    detail: str = Field(..., description="Human-readable explanation")


class SuccessResponse(BaseModel):
    """Acknowledgement for operations without a resource body."""

    success: bool = True
