from __future__ import annotations

import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.context import AppContext, get_app_context
from core.errors import auth_invalid_token
from security.principal import AuthPrincipal

logger = logging.getLogger(__name__)

token_auth_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str, context: AppContext) -> dict:
    settings = context.settings
    try:
        return jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as err:
        raise auth_invalid_token(details={"reason": "expired"}) from err
    except jwt.InvalidTokenError as err:
        logger.info("Rejected bearer token: %s", err)
        raise auth_invalid_token(details={"reason": "invalid"}) from err


async def verify_any_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(token_auth_scheme),
    context: AppContext = Depends(get_app_context),
) -> AuthPrincipal:
    if credentials is None or not credentials.credentials:
        raise auth_invalid_token()

    claims = decode_access_token(credentials.credentials, context)
    return AuthPrincipal(
        user_id=str(claims["sub"]),
        email=claims.get("email"),
        role=claims.get("role"),
        jwt_token=credentials.credentials,
    )
