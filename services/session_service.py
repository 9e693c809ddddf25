from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from jose.exceptions import JOSEError
from sqlalchemy.orm import Session

from core.context import AppContext
from core.exceptions import (ConstraintViolation, InvalidCredentials, NotFoundError,
                             ServerError, Unauthorized)
from models.users import User
from services.refresh_token_store import RefreshTokenStore
from services.token_service import AccessTokenCodec
from services.user_service import UserService
from utils.clock import utc_now, as_utc
from utils.hashing import CredentialHasher
from utils.logger import get_logger, truncate_token

logger = get_logger(__name__)


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


class SessionManager:
    """
    Login / refresh / revoke protocol.

    A refresh token is Active until it is revoked or its expiry passes; both
    end states are terminal. Refreshing does not rotate the refresh token: the
    same value keeps minting access tokens until it expires or is revoked.
    """

    def __init__(
        self,
        ctx: AppContext,
        db: Session,
        clock: Callable[[], datetime] = utc_now,
        hasher: Optional[CredentialHasher] = None,
    ):
        self.ctx = ctx
        self.db = db
        self._clock = clock
        self.hasher = hasher or CredentialHasher.from_context(ctx)
        self.codec = AccessTokenCodec(ctx, clock=clock)
        self.store = RefreshTokenStore(db, clock=clock)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Verify credentials and open a new session.

        Unknown email and wrong password raise the same InvalidCredentials.
        Anything failing after the password matched is a ServerError: the
        client did nothing wrong and may retry.
        """
        try:
            user = UserService.get_by_email(self.db, email)
        except NotFoundError:
            self.hasher.dummy_verify()
            logger.info("Login failed - user not found", extra={"email": email})
            raise InvalidCredentials("unknown_email")

        # CredentialDecodeError (a ServerError) propagates for a corrupt digest
        if not self.hasher.verify(password, user.hashed_password):
            logger.info("Login failed - wrong password", extra={"user_id": str(user.id)})
            raise InvalidCredentials("wrong_password")

        try:
            access_token = self.codec.issue(user.id, self.ctx.access_token_ttl)
            refresh_token = self.store.generate()
            self.store.create(refresh_token, user.id, self.ctx.refresh_token_ttl)
        except (JOSEError, OSError, ConstraintViolation) as e:
            logger.error(
                "Failed to open session after successful authentication",
                extra={"user_id": str(user.id), "error_type": type(e).__name__},
                exc_info=True
            )
            raise ServerError("session issuance failed") from e

        logger.info("Login successful", extra={"user_id": str(user.id)})
        return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)

    def refresh(self, token: str) -> str:
        """
        Mint a new access token from a valid refresh token.

        Raises:
            Unauthorized: reason is one of not_found, revoked, expired
        """
        preview = truncate_token(token)

        try:
            record = self.store.lookup(token)
        except NotFoundError:
            logger.info("Refresh token not found", extra={"token_preview": preview})
            raise Unauthorized("not_found")

        if record.revoked_at is not None:
            logger.info("Refresh token revoked", extra={"token_preview": preview})
            raise Unauthorized("revoked")

        expires_at = as_utc(record.expires_at)
        if self._clock() >= expires_at:
            logger.info(
                "Refresh token expired",
                extra={"token_preview": preview, "expires_at": expires_at.isoformat()}
            )
            raise Unauthorized("expired")

        try:
            access_token = self.codec.issue(record.user_id, self.ctx.access_token_ttl)
        except JOSEError as e:
            logger.error("Failed to create access token", extra={"user_id": str(record.user_id)}, exc_info=True)
            raise ServerError("access token issuance failed") from e

        logger.info("Access token refreshed", extra={"user_id": str(record.user_id)})
        return access_token

    def revoke(self, token: str) -> None:
        """
        Logout. Succeeds for unknown and already-revoked tokens alike, so
        callers can retry freely and learn nothing about token existence. A
        failed lookup is logged and treated the same way; only a failed
        revoke write raises ServerError.
        """
        preview = truncate_token(token)

        try:
            self.store.lookup(token)
        except NotFoundError:
            logger.info("Attempt to revoke non-existent token", extra={"token_preview": preview})
            return
        except ServerError:
            logger.error("Refresh token lookup failed during revoke", extra={"token_preview": preview})
            return

        changed = self.store.revoke(token)
        logger.info(
            "Refresh token revoked" if changed else "Refresh token already revoked",
            extra={"token_preview": preview}
        )
