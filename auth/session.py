"""
Session resolution for FastAPI.

Reads the bearer token, verifies it and exposes the caller as a claims dict.
get_session_user never raises: anonymous or invalid tokens resolve to None
so that tenant guards can decide the order of their own checks.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import dotenv
import jwt
from fastapi import Depends, Header, HTTPException, Request
from loguru import logger

from tenancy.errors import ErrorKind, error_detail

dotenv.load_dotenv()


class AuthConfig:
    """JWT verification settings"""

    def __init__(self, secret_key: str = None, algorithm: str = None, token_ttl: int = None):
        self.secret_key = secret_key or os.getenv("JWT_SECRET_KEY")
        if not self.secret_key:
            raise ValueError("JWT_SECRET_KEY environment variable not set. Cannot verify sessions.")
        if len(self.secret_key) < 32:
            logger.warning("JWT_SECRET_KEY is less than 32 bytes - use a stronger secret!")
        self.algorithm = algorithm or os.getenv("JWT_ALGORITHM", "HS256")
        self.token_ttl = token_ttl or int(os.getenv("JWT_TOKEN_TTL", "3600"))


def create_access_token(
    config: AuthConfig,
    user_id: str,
    roles: Iterable[str] = (),
    expires_in: Optional[int] = None,
) -> str:
    """Issue a signed access token for user_id"""
    expiry = datetime.now(timezone.utc) + timedelta(seconds=expires_in or config.token_ttl)
    return jwt.encode(
        {"sub": user_id, "roles": list(roles), "exp": expiry},
        config.secret_key,
        algorithm=config.algorithm,
    )


def verify_token(config: AuthConfig, token: str) -> Optional[dict]:
    """Verify JWT token and return payload (None when invalid or expired)"""
    try:
        payload = jwt.decode(token, config.secret_key, algorithms=[config.algorithm])
    except jwt.ExpiredSignatureError:
        logger.warning("[TOKEN_VERIFY] Token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"[TOKEN_VERIFY] Invalid token: {e}")
        return None

    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        logger.warning("[TOKEN_VERIFY] Token carries no subject")
        return None

    payload["user_id"] = str(user_id)
    return payload


# ==================== DEPENDENCY FUNCTIONS ====================

async def get_session_user(
    request: Request,
    authorization: str = Header(None),
) -> Optional[dict]:
    """
    Dependency: Claims of the calling user, or None when anonymous.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None

    token = authorization[len("Bearer "):].strip()
    if not token:
        return None

    config: AuthConfig = request.app.state.auth_config
    return verify_token(config, token)


async def require_user(user: Optional[dict] = Depends(get_session_user)) -> dict:
    """
    Dependency: Reject anonymous callers with 401.
    """
    if user is None:
        raise HTTPException(status_code=401, detail=error_detail(ErrorKind.UNAUTHENTICATED))
    return user


async def require_admin(user: dict = Depends(require_user)) -> dict:
    """
    Dependency: Require the platform admin role.
    """
    if "admin" not in (user.get("roles") or []):
        logger.warning(
            f"User {user['user_id']} attempted to access admin endpoint without required role"
        )
        raise HTTPException(
            status_code=403,
            detail=error_detail(ErrorKind.FORBIDDEN_ROLE, "Role 'admin' required"),
        )
    return user
