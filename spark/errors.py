"""
Spark — Domain errors.

Services raise these instead of ``HTTPException`` so that they stay usable
outside a request.  ``spark.main`` maps every ``SparkError`` onto an HTTP
response using ``status_code`` and ``code``.
"""

from __future__ import annotations

from typing import Any


class SparkError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, detail: str, **context: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"detail": self.detail, "code": self.code}
        if self.context:
            body["context"] = {k: str(v) for k, v in self.context.items()}
        return body


class ValidationError(SparkError):
    """Request is well-formed JSON but violates a domain rule."""

    status_code = 422
    code = "validation_error"


class NotFoundError(SparkError):
    status_code = 404
    code = "not_found"


class AuthorizationError(SparkError):
    """Caller identity is missing, or the caller may not touch the resource."""

    status_code = 403
    code = "forbidden"

    def __init__(self, detail: str, unauthenticated: bool = False, **context: Any) -> None:
        super().__init__(detail, **context)
        if unauthenticated:
            self.status_code = 401
            self.code = "unauthenticated"


class ConflictError(SparkError):
    status_code = 409
    code = "conflict"


class UpstreamError(SparkError):
    """The database or another dependency is unavailable; safe to retry."""

    status_code = 503
    code = "upstream_unavailable"
