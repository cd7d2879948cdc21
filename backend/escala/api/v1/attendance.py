"""
Attendance endpoints.

- POST /api/v1/attendance/mark     - leader confirms a scanned volunteer QR code
- POST /api/v1/attendance/process  - scheduled sweep marking no-shows absent

Both answer with ``{"error": ...}`` bodies on failure so the dashboard can
tell "already confirmed" (409) apart from every other failure (500).
"""
import logging
import secrets
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from escala.db.base import get_db
from escala.core.config import settings
from escala.core.deps import get_current_user_optional, get_now, get_event_tz
from escala.core.errors import AttendanceError, DatastoreUnavailable
from escala.models.user import User
from escala.schemas.attendance import (
    AttendanceMark, AttendanceMarkResponse, AttendanceErrorResponse, AttendanceProcessResponse,
)
from escala.services.absence_sweeper import sweep_absences
from escala.services.attendance import confirm_scanned_payload, CONFIRMED_MESSAGE
from escala.services.push import PushSender, get_push_sender

logger = logging.getLogger(__name__)

router = APIRouter()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def require_cron_caller(
    x_cron_secret: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> None:
    """Allow the scheduler (shared secret) or an admin to trigger the sweep."""
    if settings.CRON_SECRET and x_cron_secret and secrets.compare_digest(x_cron_secret, settings.CRON_SECRET):
        return
    if current_user is not None and current_user.is_admin:
        return
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Cron secret or admin token required")


@router.post(
    "/mark",
    response_model=AttendanceMarkResponse,
    responses={409: {"model": AttendanceErrorResponse}, 500: {"model": AttendanceErrorResponse}},
    openapi_extra={"requestBody": {
        "required": True,
        "content": {"application/json": {"schema": AttendanceMark.model_json_schema()}},
    }},
)
async def mark_attendance(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
    push_sender: Optional[PushSender] = Depends(get_push_sender),
):
    """Confirm a volunteer's presence from the scanned QR payload.

    The body is read loosely; a malformed payload is reported like every
    other confirmation failure.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        await confirm_scanned_payload(db, current_user, payload, push_sender=push_sender)
    except AttendanceError as e:
        logger.info(f"mark-attendance rejected: {type(e).__name__}: {e.message}")
        return error_response(e.status_code, e.message)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Datastore error in mark-attendance")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, DatastoreUnavailable.message)

    return AttendanceMarkResponse(success=True, message=CONFIRMED_MESSAGE)


@router.post(
    "/process",
    response_model=AttendanceProcessResponse,
    responses={500: {"model": AttendanceErrorResponse}},
    dependencies=[Depends(require_cron_caller)],
)
async def process_attendance(
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: ZoneInfo = Depends(get_event_tz),
):
    """Mark unconfirmed volunteers of ended events absent and notify leaders."""
    try:
        report = await sweep_absences(db, now, tz)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Error in process-attendance")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return AttendanceProcessResponse(
        success=True,
        message=report.message,
        processed_events=report.processed_events,
        marked_absent=report.marked_absent,
        notifications_sent=report.notifications_sent,
    )
