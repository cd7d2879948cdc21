"""
Authentication endpoints.

- POST /api/v1/auth/login - exchange email/password for a bearer token
- GET  /api/v1/auth/me    - current user profile
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from escala.db.base import get_db
from escala.core.security import verify_password, create_access_token
from escala.core.deps import get_current_user
from escala.models.user import User
from escala.schemas.auth import UserLogin, UserResponse, TokenResponse

router = APIRouter()


def user_to_response(user: User) -> UserResponse:
    """Convert User model to UserResponse schema."""
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role.value,
        department_id=user.department_id,
        volunteer_id=user.volunteer.id if user.volunteer else None,
        is_active=user.is_active,
        created=user.created,
        updated=user.updated,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Authenticate with email and password."""
    result = await db.execute(
        select(User)
        .options(selectinload(User.volunteer))
        .where(User.email == credentials.email)
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to authenticate."
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is disabled."
        )

    token = create_access_token(
        subject=user.id,
        additional_claims={"role": user.role.value},
    )
    return TokenResponse(token=token, user=user_to_response(user))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return user_to_response(current_user)
