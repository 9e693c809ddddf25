from fastapi import APIRouter, Request
from starlette import status
from core.exceptions import ForbiddenError
from services.refresh_token_store import RefreshTokenStore
from services.user_service import UserService
from utils.deps import context_dependency, db_dependency
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/admin",
    tags=["admin"]
)


@router.post("/reset", status_code=status.HTTP_200_OK)
def reset(request: Request, ctx: context_dependency, db: db_dependency):
    """
    Delete every session and account. Only allowed on the dev platform.
    """
    if ctx.platform != "dev":
        logger.warning("Reset attempted outside dev", extra={"platform": ctx.platform})
        raise ForbiddenError("reset_not_dev", message="Forbidden: reset only allowed in dev")

    tokens_deleted = RefreshTokenStore(db).delete_all()
    users_deleted = UserService.delete_all(db)

    logger.info(
        "Users and sessions reset",
        extra={"users_deleted": users_deleted, "tokens_deleted": tokens_deleted}
    )

    return {"message": "Users reset", "users_deleted": users_deleted, "tokens_deleted": tokens_deleted}
