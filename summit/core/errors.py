"""
core/errors.py
--------------
Application error taxonomy.

Services and repositories raise these; the handlers registered in
main.create_application() turn them into JSON responses. Route code never
builds error responses by hand.

    Unauthenticated   401  no or invalid session
    Unauthorized      403  authenticated, but not allowed
    ValidationFailed  400  malformed input, with field-level messages
    NotFound          404  absent, soft-deleted, or owned by another tenant
    Conflict          409  uniqueness or state conflict
    UpstreamFailure   502  object storage / SMTP unavailable
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class SummitError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_content(self) -> Dict[str, Any]:
        return {"detail": self.message}

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class Unauthenticated(SummitError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Unauthorized(SummitError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class ValidationFailed(SummitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls(message, errors=[{"field": field, "message": message}])

    def to_content(self) -> Dict[str, Any]:
        content = super().to_content()
        if self.errors:
            content["errors"] = self.errors
        return content


class NotFound(SummitError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(SummitError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class UpstreamFailure(SummitError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service unavailable"
