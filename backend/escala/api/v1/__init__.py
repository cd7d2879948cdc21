"""
v1 API routers for Escala.
"""
from fastapi import APIRouter

from escala.api.v1.auth import router as auth_router
from escala.api.v1.attendance import router as attendance_router
from escala.api.v1.events import router as events_router
from escala.api.v1.notifications import router as notifications_router
from escala.api.v1.push_subscriptions import router as push_subscriptions_router

# Combined v1 router
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(attendance_router, prefix="/attendance", tags=["attendance"])
api_router.include_router(events_router, prefix="/events", tags=["events"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
api_router.include_router(push_subscriptions_router, prefix="/push-subscriptions", tags=["push"])

__all__ = ["api_router"]
