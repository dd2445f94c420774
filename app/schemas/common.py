"""Shared schema base and the {success, data, error} response envelope."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(CamelModel, Generic[DataT]):
    """Successful response wrapper."""

    success: bool = True
    data: DataT | None = None


class ErrorBody(BaseModel):
    """Error payload; extra keys (details, remainingAttempts, lockedUntil) pass through."""

    model_config = ConfigDict(extra="allow")

    code: str = Field(..., description="Stable machine-readable error code")
    message: str = Field(..., description="Human-readable message")


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: ErrorBody

    @classmethod
    def build(cls, code: str, message: str, **extra: Any) -> "ErrorEnvelope":
        return cls(error=ErrorBody(code=code, message=message, **extra))


class MessageResponse(CamelModel):
    message: str
