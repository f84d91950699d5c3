"""Authentication dependencies for FastAPI routes."""

from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from synapse_legal.core.exceptions import AuthError, DependencyError
from synapse_legal.schemas.auth import CurrentUser
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)

# auto_error=False so a missing header reaches the AuthError handler as 401
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Resolve the caller from the bearer token.

    Args:
        request: Incoming request, used to reach the application context
        credentials: HTTP Authorization credentials

    Returns:
        CurrentUser: Authenticated user information

    Raises:
        AuthError: If the token is missing, invalid, or expired
    """
    if not credentials or not credentials.credentials:
        LOGGER.warning("No authorization credentials provided")
        raise AuthError("Authorization header missing")

    verifier = request.app.state.context.jwt_verifier
    try:
        claims = await verifier.verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid authentication token", original_error=e) from e
    except DependencyError as e:
        # JWKS unreachable: the token cannot be proven valid
        LOGGER.error(f"Could not verify token: {e}")
        raise AuthError("Invalid authentication token", original_error=e) from e

    user = CurrentUser(
        id=claims.sub,
        email=claims.email,
        role=claims.role or "user",
        user_metadata=claims.user_metadata,
    )
    request.state.user_id = user.id
    LOGGER.debug(f"Authenticated user: {user.id}")
    return user
