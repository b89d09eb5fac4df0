"""
Admin Authentication Service

Credentials come from settings. A successful login creates an explicit
AdminSession that travels as a signed JWT in an HTTP-only cookie; logout
tears it down by deleting the cookie.
"""
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt

from app.config import get_settings

ALGORITHM = "HS256"


@dataclass
class AdminSession:
    """Request-scoped admin session context."""
    username: str
    authenticated: bool = True


def verify_credentials(username: str, password: str) -> bool:
    """Constant-time comparison against the configured admin account."""
    settings = get_settings()
    user_ok = hmac.compare_digest(username.encode(), settings.admin_username.encode())
    password_ok = hmac.compare_digest(password.encode(), settings.admin_password.encode())
    return user_ok and password_ok


def login(username: str, password: str) -> Optional[AdminSession]:
    """Create a session for valid credentials, None otherwise."""
    if not verify_credentials(username, password):
        return None
    return AdminSession(username=username)


def encode_session(session: AdminSession, expires_delta: Optional[timedelta] = None) -> str:
    """Serialise a session into a signed token."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.session_expire_minutes)
    )
    return jwt.encode(
        {"sub": session.username, "auth": session.authenticated, "exp": expire},
        settings.session_secret_key,
        algorithm=ALGORITHM,
    )


def decode_session(token: Optional[str]) -> Optional[AdminSession]:
    """Restore a session from a token. Invalid or expired tokens give None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, get_settings().session_secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    username = payload.get("sub")
    if not username or not payload.get("auth"):
        return None
    return AdminSession(username=username)
