"""
Common schemas used across the application.
"""
from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list response."""
    page: int
    perPage: int
    totalItems: int
    totalPages: int
    items: list[T]


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str


class SuccessResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    """Health check response."""
    code: int = 200
    message: str = "API is healthy."
