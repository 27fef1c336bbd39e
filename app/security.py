# app/security.py
"""
Request identity.

Users arrive with a bearer JWT issued by the external identity provider
(HS256, shared JWT_SECRET). Claim "sub" is the user ID; "email" is optional.
Their wallet account is created on first authenticated request.

Internal endpoints (cron-triggered settlement) use a static SERVICE_KEY.
"""

from __future__ import annotations

import hmac
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from wallet.ledger import create_account, get_wallet

_logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


def get_jwt_secret() -> str:
    return os.environ.get("JWT_SECRET", "")


def get_service_key() -> str:
    return os.environ.get("SERVICE_KEY", "")


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    expires_delta: timedelta = timedelta(hours=1),
) -> str:
    """Issue a token in the identity provider's format (used by tests and tooling)."""
    claims = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, get_jwt_secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT. Returns None if invalid or expired."""
    secret = get_jwt_secret()
    if not secret:
        return None
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError as e:
        _logger.debug(f"Rejected token: {e}")
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency: the authenticated user.

    Raises 401 if the token is missing or invalid.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="User not authenticated")

    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub") if payload else None
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = CurrentUser(id=str(user_id), email=payload.get("email"))
    if get_wallet(user.id) is None:
        create_account(user.id, user.email)
    return user


async def require_service_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """
    FastAPI dependency: caller must present SERVICE_KEY as a bearer token.

    Internal endpoints are closed entirely when SERVICE_KEY is unset.
    """
    expected = get_service_key()
    if not expected or credentials is None:
        raise HTTPException(status_code=401, detail="Service key required")
    if not hmac.compare_digest(credentials.credentials, expected):
        raise HTTPException(status_code=401, detail="Invalid service key")
