"""
Vantage Analytics - Authentication Dependencies
JWT bearer tokens with admin gating
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.core.config import Settings
from app.domain.users.entities import ADMIN_ROLES

# Tokens are issued by the platform's auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate JWT token."""
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    request: Request,
) -> dict:
    """Get current authenticated user from JWT token claims."""
    settings = request.app.state.settings

    payload = decode_token(token, settings)

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    return {
        "id": user_id,
        "username": payload.get("username"),
        "role": payload.get("role"),
    }


async def require_admin(
    current_user: Annotated[dict, Depends(get_current_user)],
) -> dict:
    """Require admin or superadmin role."""
    if current_user.get("role") not in {role.value for role in ADMIN_ROLES}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user

