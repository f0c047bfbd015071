"""
Password hashing, JWT issuing/parsing and the FastAPI dependencies that
resolve the calling user from a bearer header or the auth cookie.
"""
import logging
from datetime import timedelta
from typing import List, Optional

import bcrypt
import jwt
from fastapi import Cookie, Depends, Header
from pymongo.database import Database

import config
from database import get_db, now
from errors import AccessDeniedError, AuthenticationError
from schemas import AppRole

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_token(username: str, roles: List[str]) -> str:
    issued_at = now()
    payload = {
        "sub": username,
        "roles": roles,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=config.JWT_EXPIRATION_MINUTES),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Return the claims of a valid token, or None when it is malformed, expired or unsupported."""
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("JWT token is expired")
    except jwt.InvalidTokenError as e:
        logger.warning("JWT validation error: %s", e)
    return None


def extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return cookie_token or None


def cookie_settings() -> dict:
    return {
        "key": config.JWT_COOKIE_NAME,
        "path": "/api",
        "httponly": True,
        "samesite": "lax",
    }


# ---------------------- Dependencies ----------------------

def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    auth_cookie: Optional[str] = Cookie(default=None, alias=config.JWT_COOKIE_NAME),
    db: Database = Depends(get_db),
) -> Optional[dict]:
    token = extract_token(authorization, auth_cookie)
    if not token:
        return None
    claims = decode_token(token)
    if not claims or not claims.get("sub"):
        return None
    user = db["user"].find_one({"username": claims["sub"]})
    if not user:
        logger.warning("Token subject %s no longer exists", claims["sub"])
    return user


def require_user(user: Optional[dict] = Depends(get_optional_user)) -> dict:
    if user is None:
        raise AuthenticationError("Full authentication is required to access this resource")
    return user


def require_admin(user: dict = Depends(require_user)) -> dict:
    if AppRole.ADMIN.value not in user.get("roles", []):
        raise AccessDeniedError("Access denied: admin role required")
    return user
