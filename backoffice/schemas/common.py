"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: Any = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail

    @classmethod
    def build(cls, code: str, message: str, detail: Any = None) -> "ErrorResponse":
        return cls(error=ErrorDetail(code=code, message=message, detail=detail))


def reject_explicit_nulls(model: BaseModel, fields: tuple[str, ...]) -> None:
    """Raise when a partial update sends null for a column that cannot hold one.

    Omitted fields are left untouched by the update, so only fields present in
    the request body are checked.
    """
    nulls = [name for name in fields if name in model.model_fields_set and getattr(model, name) is None]
    if nulls:
        raise ValueError(f"Field(s) cannot be null: {', '.join(nulls)}")
