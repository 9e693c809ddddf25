import uuid
from typing import Annotated
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from core.context import AppContext
from core.database import SessionLocal
from services.session_service import SessionManager
from services.token_service import AccessTokenCodec
from utils.hashing import CredentialHasher
from utils.headers import get_bearer_token


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


def get_context(request: Request) -> AppContext:
    return request.app.state.context

context_dependency = Annotated[AppContext, Depends(get_context)]


def get_hasher(ctx: context_dependency) -> CredentialHasher:
    return CredentialHasher.from_context(ctx)

hasher_dependency = Annotated[CredentialHasher, Depends(get_hasher)]


def get_session_manager(ctx: context_dependency, db: db_dependency) -> SessionManager:
    return SessionManager(ctx, db)

session_dependency = Annotated[SessionManager, Depends(get_session_manager)]


def get_current_user_id(request: Request, ctx: context_dependency) -> uuid.UUID:
    """
    Identity behind the Bearer access token. Header and token failures raise
    their own AuthenticationError and are mapped to a plain 401.
    """
    token = get_bearer_token(request.headers)
    return AccessTokenCodec(ctx).verify(token)

user_id_dependency = Annotated[uuid.UUID, Depends(get_current_user_id)]


def get_presented_refresh_token(request: Request) -> str:
    return get_bearer_token(request.headers)

refresh_token_dependency = Annotated[str, Depends(get_presented_refresh_token)]
