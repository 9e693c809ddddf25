from fastapi import APIRouter, Request
from starlette import status
from schemas.auth_schemas import CreateUserRequest, UpdateUserRequest, UserResponse
from services.user_service import UserService
from utils.deps import db_dependency, hasher_dependency, user_id_dependency
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/api/users",
    tags=["users"]
)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
@limiter.limit("3/minute")
def create_user(request: Request, body: CreateUserRequest, db: db_dependency, hasher: hasher_dependency):
    user = UserService.create_user(db, body.email, hasher.hash(body.password))

    logger.info(
        "User created successfully",
        extra={"user_id": str(user.id), "email": user.email}
    )

    return user


@router.put("", status_code=status.HTTP_200_OK, response_model=UserResponse)
@limiter.limit("5/minute")
def update_user(request: Request, body: UpdateUserRequest, user_id: user_id_dependency,
    db: db_dependency, hasher: hasher_dependency):
    """
    Update the caller's own email and password (protected endpoint).
    """
    user = UserService.update_user(db, user_id, body.email, hasher.hash(body.password))

    logger.info(
        "User updated successfully",
        extra={"user_id": str(user.id), "new_email": user.email}
    )

    return user
