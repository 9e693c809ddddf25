import secrets
import uuid
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import ConstraintViolation, NotFoundError, ServerError
from models.refresh_tokens import RefreshToken
from utils.clock import utc_now
from utils.logger import get_logger, truncate_token

logger = get_logger(__name__)

REFRESH_TOKEN_BYTES = 32
DEFAULT_REFRESH_TTL = timedelta(days=60)


class RefreshTokenStore:
    """
    Persistence for refresh tokens.

    All consistency comes from the database: no locking here, and revocation
    is a single conditional UPDATE so concurrent revokes/refreshes resolve at
    row level.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self._clock = clock

    @staticmethod
    def generate() -> str:
        """64 lowercase hex characters backed by 256 bits from the OS CSPRNG."""
        return secrets.token_hex(REFRESH_TOKEN_BYTES)

    def create(self, token: str, owner: uuid.UUID, ttl: timedelta = DEFAULT_REFRESH_TTL) -> RefreshToken:
        """
        Persist a new, active refresh token for `owner`.

        Raises:
            ConstraintViolation: owner doesn't exist (FK enforced by the store)
            ServerError: any other backing-store failure
        """
        now = self._clock()
        record = RefreshToken(
            token=token,
            user_id=owner,
            created_at=now,
            updated_at=now,
            expires_at=now + ttl,
            revoked_at=None,
        )

        try:
            self.db.add(record)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                "Refresh token rejected by constraint",
                extra={"user_id": str(owner), "error": str(e.orig)}
            )
            raise ConstraintViolation("refresh token owner does not exist") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to persist refresh token", extra={"user_id": str(owner)}, exc_info=True)
            raise ServerError("refresh token insert failed") from e

        self.db.refresh(record)
        return record

    def lookup(self, token: str) -> RefreshToken:
        """
        Raises:
            NotFoundError: no record has exactly this value
        """
        try:
            record = self.db.query(RefreshToken).filter(RefreshToken.token == token).one_or_none()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Refresh token lookup failed", exc_info=True)
            raise ServerError("refresh token lookup failed") from e

        if record is None:
            raise NotFoundError("refresh token not found")

        return record

    def revoke(self, token: str) -> bool:
        """
        Mark the token revoked. Idempotent: an already-revoked token keeps its
        original revoked_at and no error is raised.

        Returns:
            True if this call changed the row
        """
        now = self._clock()
        try:
            result = self.db.execute(
                update(RefreshToken)
                .where(RefreshToken.token == token, RefreshToken.revoked_at.is_(None))
                .values(revoked_at=now, updated_at=now)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Failed to revoke refresh token",
                extra={"token_preview": truncate_token(token)},
                exc_info=True
            )
            raise ServerError("refresh token revoke failed") from e

        return result.rowcount > 0

    def delete_all(self) -> int:
        try:
            result = self.db.execute(delete(RefreshToken))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to delete refresh tokens", exc_info=True)
            raise ServerError("refresh token delete failed") from e

        return result.rowcount
