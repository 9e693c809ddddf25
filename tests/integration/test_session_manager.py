import re
import pytest
from datetime import timedelta
from core.exceptions import (CredentialDecodeError, InvalidCredentials, ServerError,
                             TokenError, TokenErrorKind, Unauthorized)
from models.refresh_tokens import RefreshToken
from services.session_service import SessionManager
from utils.clock import as_utc

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture
def sessions(ctx, session, clock, hasher):
    return SessionManager(ctx, session, clock=clock, hasher=hasher)


def test_login_issues_token_pair(sessions, user, session, clock):
    result = sessions.login(user.email, TEST_PASSWORD)

    assert result.user.id == user.id
    assert sessions.codec.verify(result.access_token) == user.id
    assert re.fullmatch(r"[0-9a-f]{64}", result.refresh_token)

    record = session.query(RefreshToken).filter(RefreshToken.token == result.refresh_token).one()
    assert record.user_id == user.id
    assert record.revoked_at is None
    assert as_utc(record.expires_at) == clock.now + timedelta(days=60)


def test_access_token_from_login_lasts_one_hour(sessions, user, clock):
    result = sessions.login(user.email, TEST_PASSWORD)

    clock.advance(timedelta(minutes=59))
    assert sessions.codec.verify(result.access_token) == user.id

    clock.advance(timedelta(minutes=1))
    with pytest.raises(TokenError) as exc_info:
        sessions.codec.verify(result.access_token)

    assert exc_info.value.kind == TokenErrorKind.EXPIRED


def test_login_email_is_case_insensitive(sessions, user):
    result = sessions.login("  WALT@BreakingBad.com ", TEST_PASSWORD)
    assert result.user.id == user.id


def test_login_wrong_password_and_unknown_email_look_the_same(sessions, user):
    with pytest.raises(InvalidCredentials) as wrong_password:
        sessions.login(user.email, "WrongPassword123!")

    with pytest.raises(InvalidCredentials) as unknown_email:
        sessions.login("nobody@example.com", TEST_PASSWORD)

    assert wrong_password.value.message == unknown_email.value.message
    assert wrong_password.value.status_code == unknown_email.value.status_code == 401
    # Internal reasons still differ for operators
    assert wrong_password.value.reason != unknown_email.value.reason


def test_login_with_corrupt_digest_is_server_error(sessions, user, session):
    user.hashed_password = "corrupted"
    session.commit()

    with pytest.raises(CredentialDecodeError) as exc_info:
        sessions.login(user.email, TEST_PASSWORD)

    assert isinstance(exc_info.value, ServerError)


def test_login_creates_new_session_each_time(sessions, user, session):
    first = sessions.login(user.email, TEST_PASSWORD)
    second = sessions.login(user.email, TEST_PASSWORD)

    assert first.refresh_token != second.refresh_token
    assert session.query(RefreshToken).filter(RefreshToken.user_id == user.id).count() == 2


def test_refresh_returns_new_access_token(ctx, session, user, hasher):
    sessions = SessionManager(ctx, session, hasher=hasher)
    result = sessions.login(user.email, TEST_PASSWORD)

    access_token = sessions.refresh(result.refresh_token)

    assert access_token != result.access_token
    assert sessions.codec.verify(access_token) == user.id


def test_refresh_does_not_rotate(sessions, user, clock):
    result = sessions.login(user.email, TEST_PASSWORD)

    sessions.refresh(result.refresh_token)
    clock.advance(timedelta(days=1))

    # Same refresh token keeps working
    assert sessions.codec.verify(sessions.refresh(result.refresh_token)) == user.id


def test_refresh_unknown_token(sessions, user):
    with pytest.raises(Unauthorized) as exc_info:
        sessions.refresh("a" * 64)

    assert exc_info.value.reason == "not_found"


def test_refresh_revoked_token(sessions, user):
    result = sessions.login(user.email, TEST_PASSWORD)
    sessions.revoke(result.refresh_token)

    with pytest.raises(Unauthorized) as exc_info:
        sessions.refresh(result.refresh_token)

    assert exc_info.value.reason == "revoked"


def test_refresh_expired_token(sessions, user, clock):
    result = sessions.login(user.email, TEST_PASSWORD)

    clock.advance(timedelta(days=60))
    with pytest.raises(Unauthorized) as exc_info:
        sessions.refresh(result.refresh_token)

    assert exc_info.value.reason == "expired"


def test_refresh_revoked_takes_precedence_over_expired(sessions, user, clock):
    result = sessions.login(user.email, TEST_PASSWORD)
    sessions.revoke(result.refresh_token)
    clock.advance(timedelta(days=61))

    with pytest.raises(Unauthorized) as exc_info:
        sessions.refresh(result.refresh_token)

    assert exc_info.value.reason == "revoked"


def test_revoke_unknown_token_succeeds(sessions, user):
    assert sessions.revoke("b" * 64) is None


def test_revoke_lookup_failure_succeeds(sessions, user, monkeypatch):
    def failing_lookup(token):
        raise ServerError("refresh token lookup failed")

    monkeypatch.setattr(sessions.store, "lookup", failing_lookup)

    assert sessions.revoke("c" * 64) is None


def test_revoke_write_failure_raises(sessions, user, monkeypatch):
    result = sessions.login(user.email, TEST_PASSWORD)

    def failing_revoke(token):
        raise ServerError("refresh token revoke failed")

    monkeypatch.setattr(sessions.store, "revoke", failing_revoke)

    with pytest.raises(ServerError):
        sessions.revoke(result.refresh_token)


def test_revoke_is_idempotent(sessions, user, session):
    result = sessions.login(user.email, TEST_PASSWORD)

    sessions.revoke(result.refresh_token)
    sessions.revoke(result.refresh_token)

    record = session.query(RefreshToken).filter(RefreshToken.token == result.refresh_token).one()
    assert record.revoked_at is not None


def test_revoke_leaves_other_sessions_alone(sessions, user):
    first = sessions.login(user.email, TEST_PASSWORD)
    second = sessions.login(user.email, TEST_PASSWORD)

    sessions.revoke(first.refresh_token)

    assert sessions.codec.verify(sessions.refresh(second.refresh_token)) == user.id


def test_access_token_survives_refresh_token_revocation(sessions, user):
    result = sessions.login(user.email, TEST_PASSWORD)
    sessions.revoke(result.refresh_token)

    # Access tokens are not tracked server-side
    assert sessions.codec.verify(result.access_token) == user.id
