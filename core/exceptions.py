"""
Error taxonomy for the auth core.

Every failure raised by the core is a ServiceError. Each one carries:
- status_code / message: the only things a client ever sees
- reason: internal detail (which check failed), logged but never returned

`to_http_exception` is the single place where internal errors are narrowed
to the wire contract.
"""

from enum import Enum
from typing import Optional

from fastapi import HTTPException


class ServiceError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, reason: Optional[str] = None, *, message: Optional[str] = None):
        super().__init__(reason or message or self.message)
        self.reason = reason
        if message is not None:
            self.message = message


class BadRequestError(ServiceError):
    status_code = 400
    message = "Bad request"


class ConstraintViolation(ServiceError):
    """A referential-integrity failure reported by the backing store."""
    status_code = 400
    message = "Invalid reference"


class InvalidCredentials(ServiceError):
    # Same message for unknown email and wrong password
    status_code = 401
    message = "Incorrect email or password"


class AuthenticationError(ServiceError):
    status_code = 401
    message = "Unauthorized"


class Unauthorized(AuthenticationError):
    """Refresh token missing, revoked or expired. `reason` says which."""


class TokenErrorKind(str, Enum):
    MALFORMED_TOKEN = "malformed_token"
    ALGORITHM_MISMATCH = "algorithm_mismatch"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    MALFORMED_SUBJECT = "malformed_subject"


class TokenError(AuthenticationError):
    def __init__(self, kind: TokenErrorKind):
        super().__init__(kind.value)
        self.kind = kind


class HeaderErrorKind(str, Enum):
    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    EMPTY_TOKEN = "empty_token"
    EMPTY_KEY = "empty_key"


class HeaderError(AuthenticationError):
    def __init__(self, kind: HeaderErrorKind):
        super().__init__(kind.value)
        self.kind = kind


class ForbiddenError(ServiceError):
    status_code = 403
    message = "Forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    message = "Not found"


class ConflictError(ServiceError):
    status_code = 409
    message = "Conflict"


class ServerError(ServiceError):
    status_code = 500
    message = "Internal server error"


class CredentialDecodeError(ServerError):
    """Stored password digest could not be parsed."""


def to_http_exception(exc: ServiceError) -> HTTPException:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(status_code=exc.status_code, detail=exc.message, headers=headers)


__all__ = [
    "ServiceError",
    "BadRequestError",
    "ConstraintViolation",
    "InvalidCredentials",
    "AuthenticationError",
    "Unauthorized",
    "TokenErrorKind",
    "TokenError",
    "HeaderErrorKind",
    "HeaderError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ServerError",
    "CredentialDecodeError",
    "to_http_exception",
]
