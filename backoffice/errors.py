"""API error type rendered with the structured error format.

Format: { "error": { "code": str, "message": str, "detail": object } }

`extra` keys, when given, are merged into the top level of the body next to
"error" (the CSV validation failure also exposes `validationErrors` there).
"""

from typing import Any


class AdminApiError(Exception):
    """Error raised by routes/services that maps to a structured HTTP response."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        detail: Any = None,
        *,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.detail = detail
        self.extra = extra or {}


def not_found(message: str) -> AdminApiError:
    return AdminApiError(404, "NOT_FOUND", message)


def conflict(message: str, detail: Any = None) -> AdminApiError:
    return AdminApiError(409, "CONFLICT", message, detail)


def bad_request(code: str, message: str, detail: Any = None) -> AdminApiError:
    return AdminApiError(400, code, message, detail)
