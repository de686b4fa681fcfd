"""
Bearer token verification

Tokens are issued elsewhere; this module only decodes them and exposes the
company the caller is acting for.
"""
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from quotedesk.core.config import settings
from quotedesk.core.middleware import AuthenticationException, AuthorizationException


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    user_name: Optional[str]
    company_id: int
    company_code: str
    company_name: Optional[str] = None


bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationException("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise AuthenticationException("Invalid token")


def user_from_claims(claims: dict) -> CurrentUser:
    """Build the caller identity, requiring a selected company"""
    company_id = claims.get("companyId")
    company_code = claims.get("companyCode")
    if not company_id or not company_code:
        raise AuthorizationException("Company selection required")

    return CurrentUser(
        user_id=claims.get("userId"),
        user_name=claims.get("userName"),
        company_id=int(company_id),
        company_code=str(company_code),
        company_name=claims.get("companyName"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Access token required")
    return user_from_claims(decode_token(credentials.credentials))
