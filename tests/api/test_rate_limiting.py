from middleware.rate_limiter import limiter, get_user_id
from core.config import settings
from services.token_service import AccessTokenCodec
from starlette.requests import Request
import uuid

PASSWORD = "TestPassword123!"


def _request(headers: dict) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.7", 1234),
    })


def test_rate_limiter_disabled_in_testing():
    assert settings.ENV == "testing"
    assert limiter.enabled is False


def test_rate_limit_key_is_token_subject(ctx):
    subject = uuid.uuid4()
    token = AccessTokenCodec(ctx).issue(subject)

    assert get_user_id(_request({"Authorization": f"Bearer {token}"})) == str(subject)


def test_rate_limit_key_falls_back_to_address():
    assert get_user_id(_request({})) == "10.0.0.7"
    assert get_user_id(_request({"Authorization": "Bearer " + "a" * 64})) == "10.0.0.7"


async def test_can_make_multiple_requests_in_tests(client, user):
    # Normally limited to 5/minute
    for _ in range(10):
        response = await client.post("/api/login", json={
            "email": user.email,
            "password": PASSWORD
        })
        assert response.status_code == 200
