"""
Authentication and user schemas.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr
from datetime import datetime


class UserLogin(BaseModel):
    """User login request."""
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    department_id: Optional[int] = None
    volunteer_id: Optional[int] = None
    is_active: bool = True
    created: datetime
    updated: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    token: str
    user: UserResponse
