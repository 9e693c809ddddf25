"""
Authorization header parsing.

Two schemes, never interchangeable:
    Authorization: Bearer <token>   session-protected endpoints
    Authorization: ApiKey <key>     payment-provider webhook
"""

from typing import Mapping

from core.exceptions import HeaderError, HeaderErrorKind

AUTHORIZATION = "Authorization"
API_KEY_SCHEME = "ApiKey"


def get_bearer_token(headers: Mapping[str, str]) -> str:
    # Scheme is case-insensitive, fields are split on runs of whitespace
    auth_header = headers.get(AUTHORIZATION)
    if not auth_header:
        raise HeaderError(HeaderErrorKind.MISSING_HEADER)

    parts = auth_header.split()
    if len(parts) < 2 or parts[0].lower() != "bearer":
        raise HeaderError(HeaderErrorKind.MALFORMED_HEADER)

    token = parts[1].strip()
    if not token:
        raise HeaderError(HeaderErrorKind.EMPTY_TOKEN)

    return token


def get_api_key(headers: Mapping[str, str]) -> str:
    # Exact-case scheme, split on the first space only so keys may contain spaces
    auth_header = headers.get(AUTHORIZATION)
    if not auth_header:
        raise HeaderError(HeaderErrorKind.MISSING_HEADER)

    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0] != API_KEY_SCHEME:
        raise HeaderError(HeaderErrorKind.MALFORMED_HEADER)

    key = parts[1].strip()
    if not key:
        raise HeaderError(HeaderErrorKind.EMPTY_KEY)

    return key
