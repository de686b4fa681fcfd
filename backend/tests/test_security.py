"""
Bearer token tests
"""
import time

import jwt
import pytest
from httpx import AsyncClient, ASGITransport

from quotedesk.core.config import settings
from quotedesk.core.middleware import AuthenticationException, AuthorizationException
from quotedesk.core.security import decode_token, user_from_claims


def make_token(**claims) -> str:
    payload = {
        "userId": 3,
        "userName": "asha",
        "companyId": 1,
        "companyCode": "AARTI",
        "companyName": "Aarti Interiors",
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class TestTokens:

    def test_claims_become_current_user(self):
        user = user_from_claims(decode_token(make_token()))

        assert user.user_id == 3
        assert user.company_id == 1
        assert user.company_code == "AARTI"
        assert user.company_name == "Aarti Interiors"

    def test_missing_company_is_forbidden(self):
        claims = decode_token(make_token(companyId=None, companyCode=None))

        with pytest.raises(AuthorizationException) as exc_info:
            user_from_claims(claims)
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Company selection required"

    def test_expired_token(self):
        with pytest.raises(AuthenticationException) as exc_info:
            decode_token(make_token(exp=int(time.time()) - 10))
        assert exc_info.value.message == "Token has expired"

    def test_wrong_signature(self):
        token = jwt.encode(
            {"companyId": 1, "companyCode": "AARTI"}, "some-other-signing-secret-0123456789abcd", algorithm="HS256"
        )
        with pytest.raises(AuthenticationException):
            decode_token(token)


class TestProtectedRoutes:
    """Requests without the test overrides"""

    @pytest.mark.asyncio
    async def test_missing_token(self):
        from main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/api/v1/quotations")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_token_without_company(self):
        from main import app
        token = make_token(companyId=None, companyCode=None)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/api/v1/bills", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTHORIZATION_ERROR"
