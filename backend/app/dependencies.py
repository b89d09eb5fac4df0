"""FastAPI dependencies shared by the routers."""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.services.asset_store import AssetStore
from app.services.auth import AdminSession, decode_session
from app.services.record_store import RecordStore


def get_record_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_asset_store() -> AssetStore:
    return AssetStore(get_settings().public_dir)


async def get_admin_session(request: Request) -> AdminSession | None:
    """Get the admin session from the session cookie (optional)."""
    token = request.cookies.get(get_settings().session_cookie_name)
    return decode_session(token)


async def require_admin(
    session: AdminSession | None = Depends(get_admin_session),
) -> AdminSession:
    """Require an authenticated admin - raises 401 otherwise."""
    if session is None or not session.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return session
