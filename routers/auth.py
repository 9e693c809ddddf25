from fastapi import APIRouter, Request, Response
from starlette import status
from schemas.auth_schemas import LoginRequest, LoginResponse, RefreshResponse
from utils.deps import session_dependency, refresh_token_dependency
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/api",
    tags=["auth"]
)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("5/minute")
def login(request: Request, body: LoginRequest, sessions: session_dependency):
    """
    Exchange email + password for an access token (1h) and a refresh token (60d).
    """
    result = sessions.login(body.email, body.password)
    user = result.user

    return LoginResponse(
        id=user.id,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
        is_chirpy_red=user.is_chirpy_red,
        token=result.access_token,
        refresh_token=result.refresh_token,
    )


@router.post("/refresh", response_model=RefreshResponse)
@limiter.limit("10/minute")
async def refresh_token(request: Request, token: refresh_token_dependency, sessions: session_dependency):
    """
    New access token for the refresh token sent as `Authorization: Bearer <token>`.
    The refresh token itself stays the same.
    """
    return RefreshResponse(token=sessions.refresh(token))


@router.post("/revoke", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def revoke_token(request: Request, token: refresh_token_dependency, sessions: session_dependency):
    """
    Logout. Always 204 for a well-formed header, whether or not the token exists.
    """
    sessions.revoke(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
