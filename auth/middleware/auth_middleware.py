"""
Session token validation for requests coming from the host platform.

The host signs an HS256 JWT with the shared `SESSION_SECRET`:
  - `sub`: the host user id
  - `sesskey`: per-session key that state-changing requests must echo back

Usage:
    @router.get("/protected")
    def protected_endpoint(session: SessionClaims = Depends(get_session)):
        return {"user_id": session.user_id}
"""

import hmac
import logging
import secrets
import time
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel

from config import get_settings
from shared.utils.constants import MSG_INVALID_SESSKEY
from shared.utils.exceptions import PermissionDeniedException

logger = logging.getLogger("auth.middleware")

security = HTTPBearer(auto_error=False)

ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_SECONDS = 3600


class SessionClaims(BaseModel):
    """Identity extracted from a verified session token."""
    user_id: int
    sesskey: str


def issue_session_token(
    user_id: int,
    sesskey: Optional[str] = None,
    ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
) -> str:
    """Sign a session token for user_id (used by the host and in tests)."""
    now = int(time.time())
    claims = {
        "sub": str(user_id),
        "sesskey": sesskey or secrets.token_urlsafe(16),
        "iat": now,
        "exp": now + ttl_seconds,
    }
    return jwt.encode(claims, get_settings().session_secret, algorithm=ALGORITHM)


def decode_session_token(token: str) -> SessionClaims:
    """
    Verify a session token and return its claims.

    Raises 401 if the signature, expiry or required claims are invalid.
    """
    try:
        claims = jwt.decode(token, get_settings().session_secret, algorithms=[ALGORITHM])
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")

    sub = claims.get("sub")
    if not sub or not str(sub).isdigit():
        raise HTTPException(status_code=401, detail="Invalid token: no sub claim")
    if not claims.get("sesskey"):
        raise HTTPException(status_code=401, detail="Invalid token: no sesskey claim")

    return SessionClaims(user_id=int(sub), sesskey=claims["sesskey"])


async def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionClaims:
    """
    FastAPI dependency: extract and validate the bearer token.
    Raises 401 if token is missing or invalid.
    """
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return decode_session_token(credentials.credentials)


async def get_current_user_id(session: SessionClaims = Depends(get_session)) -> int:
    return session.user_id


def require_sesskey(session: SessionClaims, sesskey: Optional[str]):
    """Reject state-changing requests that don't echo the session key."""
    if not sesskey or not hmac.compare_digest(session.sesskey, sesskey):
        logger.warning(f"Invalid sesskey for user {session.user_id}")
        raise PermissionDeniedException(MSG_INVALID_SESSKEY)
