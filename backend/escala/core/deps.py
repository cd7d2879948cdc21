"""
Request dependencies: authenticated caller resolution and role guards.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from escala.db.base import get_db
from escala.core.config import settings
from escala.core.security import verify_token
from escala.models.user import User
from escala.services.event_window import get_event_timezone

bearer_scheme = HTTPBearer(auto_error=False)


async def _load_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(
        select(User)
        .options(selectinload(User.volunteer))
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Return the caller if a valid bearer token is present, else None."""
    if credentials is None:
        return None
    user_id = verify_token(credentials.credentials)
    if user_id is None:
        return None
    user = await _load_user(db, user_id)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """Require an authenticated, active caller."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="The request requires valid record authorization token to be set.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_now() -> datetime:
    """Current instant. Overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)


def get_event_tz() -> ZoneInfo:
    return get_event_timezone(settings.EVENT_TIMEZONE)
