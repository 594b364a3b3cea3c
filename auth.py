"""
Session tokens and authorization checks

Tokens are HS256 JWTs carried in the ``token`` cookie. The checks are
FastAPI dependencies that can be stacked in front of any route:
``verify_token`` proves a session, ``require_role`` additionally looks the
caller up and compares its stored role.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Cookie, Depends, HTTPException, Response

from repositories import AccountRepository, get_account_repository

logger = logging.getLogger(__name__)

ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "super-secret-key")
ALGORITHM = "HS256"
TOKEN_COOKIE = "token"
TOKEN_EXPIRES = timedelta(days=365)


def is_production() -> bool:
    return os.getenv("ENVIRONMENT", "development") == "production"


def cookie_options() -> dict:
    production = is_production()
    return {
        "secure": production,
        "samesite": "none" if production else "strict",
    }


def create_token(payload: dict) -> str:
    claims = dict(payload)
    claims["exp"] = datetime.now(timezone.utc) + TOKEN_EXPIRES
    return jwt.encode(claims, ACCESS_TOKEN_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, ACCESS_TOKEN_SECRET, algorithms=[ALGORITHM])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(TOKEN_COOKIE, token, httponly=True, **cookie_options())


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(TOKEN_COOKIE, httponly=True, **cookie_options())


def verify_token(token: Optional[str] = Cookie(None)) -> dict:
    if not token:
        raise HTTPException(status_code=401, detail="unauthorized access")
    try:
        return decode_token(token)
    except jwt.PyJWTError as e:
        logger.warning("Rejected session token: %s", e)
        raise HTTPException(status_code=401, detail="unauthorized access")


def require_role(role: str):
    """Build a dependency that lets only accounts holding ``role`` through."""

    def check_role(
        user: dict = Depends(verify_token),
        accounts: AccountRepository = Depends(get_account_repository),
    ) -> dict:
        email = user.get("email")
        logger.debug("Verifying %s for %s", role, email)
        account = accounts.find_by_email(email) if email else None
        if not account or account.get("role") != role:
            raise HTTPException(status_code=403, detail=f"forbidden access! Action only {role.title()}")
        return user

    return check_role


verify_admin = require_role("admin")
verify_seller = require_role("seller")
