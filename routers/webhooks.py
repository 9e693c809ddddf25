import secrets
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError
from starlette import status
from core.exceptions import AuthenticationError, BadRequestError
from schemas.auth_schemas import PolkaWebhookRequest
from services.user_service import UserService
from utils.deps import context_dependency, db_dependency
from utils.headers import get_api_key
from utils.logger import get_logger, sanitize_log_data

logger = get_logger(__name__)

UPGRADE_EVENT = "user.upgraded"


def require_polka_key(request: Request, ctx: context_dependency) -> None:
    """Webhook callers authenticate with `Authorization: ApiKey <key>`."""
    key = get_api_key(request.headers)

    if not secrets.compare_digest(key.encode(), ctx.polka_key.encode()):
        logger.warning("Invalid Polka API key", extra=sanitize_log_data({"api_key": key}))
        raise AuthenticationError("api_key_mismatch")


async def parse_webhook_body(request: Request) -> PolkaWebhookRequest:
    # Undecodable or wrongly typed payloads are a 400, not a validation 422
    try:
        return PolkaWebhookRequest.model_validate_json(await request.body())
    except ValidationError as e:
        logger.info("Polka webhook body rejected", extra={"errors": e.error_count()})
        raise BadRequestError("invalid webhook body", message="Invalid JSON")


router = APIRouter(
    prefix="/api/polka",
    tags=["webhooks"],
    dependencies=[Depends(require_polka_key)]
)


@router.post("/webhooks", status_code=status.HTTP_204_NO_CONTENT)
def polka_webhook(body: Annotated[PolkaWebhookRequest, Depends(parse_webhook_body)], db: db_dependency):
    """
    Payment provider callback. Only `user.upgraded` does anything; other
    events are acknowledged and ignored.
    """
    logger.info("Polka webhook received", extra={"event": body.event})

    if body.event != UPGRADE_EVENT:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    try:
        user_id = uuid.UUID(body.data.user_id)
    except ValueError:
        raise BadRequestError("invalid user_id", message="Invalid user_id")

    UserService.upgrade_to_red(db, user_id)

    logger.info("User upgraded to Chirpy Red", extra={"user_id": str(user_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
