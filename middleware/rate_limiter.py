from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from jose import jwt, JWTError
from core.config import settings
from core.exceptions import HeaderError
from services.token_service import ALGORITHM
from utils.headers import get_bearer_token


def get_user_id(request: Request):
    """
    Rate-limit key: the access token subject when one verifies, otherwise
    the client address.
    """
    try:
        token = get_bearer_token(request.headers)
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id:
            return str(user_id)
    except (HeaderError, JWTError):
        pass

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_user_id,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.ENV != "testing"
)
