import uuid

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ServerError
from models.users import User
from utils.logger import get_logger

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """
    Account store. The session core only needs `get_by_email`; the rest backs
    the user and webhook endpoints.
    """

    @staticmethod
    def get_by_email(db: Session, email: str) -> User:
        model = db.query(User).filter(User.email == normalize_email(email)).one_or_none()
        if model is None:
            raise NotFoundError("user not found")
        return model

    @staticmethod
    def get_by_id(db: Session, user_id: uuid.UUID) -> User:
        model = db.query(User).filter(User.id == user_id).one_or_none()
        if model is None:
            raise NotFoundError("user not found", message="User not found")
        return model

    @staticmethod
    def create_user(db: Session, email: str, hashed_password: str) -> User:
        model = User(email=normalize_email(email), hashed_password=hashed_password)
        db.add(model)
        UserService._commit(db, email)
        db.refresh(model)
        return model

    @staticmethod
    def update_user(db: Session, user_id: uuid.UUID, email: str, hashed_password: str) -> User:
        model = UserService.get_by_id(db, user_id)
        model.email = normalize_email(email)
        model.hashed_password = hashed_password
        UserService._commit(db, email)
        db.refresh(model)
        return model

    @staticmethod
    def upgrade_to_red(db: Session, user_id: uuid.UUID) -> User:
        model = UserService.get_by_id(db, user_id)
        if not model.is_chirpy_red:
            model.is_chirpy_red = True
            UserService._commit(db, model.email)
        return model

    @staticmethod
    def delete_all(db: Session) -> int:
        """Wipe every account. Dev platform only."""
        try:
            result = db.execute(delete(User))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to reset users", exc_info=True)
            raise ServerError("user reset failed") from e
        return result.rowcount

    @staticmethod
    def _commit(db: Session, email: str) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning("Duplicate email attempt", extra={"email": email})
            raise ConflictError("duplicate email", message="Email already exists") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to write user", extra={"email": email}, exc_info=True)
            raise ServerError("user write failed") from e
