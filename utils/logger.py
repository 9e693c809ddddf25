"""
Logging utility functions and helpers.
"""

import logging
from contextvars import ContextVar
from typing import Any, Dict

# Set by RequestIDMiddleware for the lifetime of one request
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

TOKEN_PREVIEW_LENGTH = 12


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


class RequestIDFilter(logging.Filter):
    """Stamps every record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_ctx.get()
        return True


def truncate_token(token: str) -> str:
    """
    Bounded preview of a credential, safe to put in a log line.

    Tokens are never logged in full.
    """
    if token is None:
        return ""
    if len(token) > TOKEN_PREVIEW_LENGTH:
        return f"{token[:TOKEN_PREVIEW_LENGTH]}..."
    return token


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive information from log data.

    Passwords, secrets and keys are fully redacted; tokens keep a short
    prefix for correlation.
    """
    sensitive_fields = {
        'password', 'token', 'secret', 'api_key', 'key', 'authorization'
    }

    sanitized = data.copy()

    for key, value in sanitized.items():
        if isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)

        elif any(sensitive in key.lower() for sensitive in sensitive_fields):
            if isinstance(value, str):
                if 'token' in key.lower():
                    sanitized[key] = truncate_token(value)
                else:
                    sanitized[key] = "***REDACTED***"

    return sanitized
