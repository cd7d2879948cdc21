"""In-app notification endpoints for the authenticated user."""
from math import ceil
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, delete

from escala.db.base import get_db
from escala.core.deps import get_current_user
from escala.models.user import User
from escala.models.notification import Notification
from escala.schemas.common import PaginatedResponse, MessageResponse
from escala.schemas.notification import NotificationResponse, NotificationDelete

router = APIRouter()


def notification_to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        user_id=n.user_id,
        message=n.message,
        type=n.type.value,
        related_event_id=n.related_event_id,
        is_read=n.is_read,
        created=n.created,
    )


@router.get("", response_model=PaginatedResponse[NotificationResponse])
async def list_notifications(
    page: int = Query(1, ge=1),
    perPage: int = Query(50, ge=1, le=200),
    unread: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread:
        query = query.where(Notification.is_read.is_(False))

    count_query = select(func.count()).select_from(query.subquery())
    total_items = (await db.execute(count_query)).scalar() or 0
    query = query.order_by(Notification.created.desc(), Notification.id.desc())
    query = query.offset((page - 1) * perPage).limit(perPage)
    result = await db.execute(query)
    items = [notification_to_response(n) for n in result.scalars().all()]
    return PaginatedResponse(
        page=page,
        perPage=perPage,
        totalItems=total_items,
        totalPages=ceil(total_items / perPage) if total_items else 1,
        items=items,
    )


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
    )
    n = result.scalar_one_or_none()
    if n is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    n.is_read = True
    await db.flush()
    return notification_to_response(n)


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    return MessageResponse(message="All notifications marked as read.")


@router.post("/delete", response_model=MessageResponse)
async def delete_notifications(
    data: NotificationDelete,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete one of the caller's notifications, or all of them."""
    if data.deleteAll:
        await db.execute(
            delete(Notification)
            .where(Notification.user_id == current_user.id)
            .execution_options(synchronize_session=False)
        )
        return MessageResponse(message="All notifications deleted successfully.")

    if data.notificationId is not None:
        await db.execute(
            delete(Notification)
            .where(
                Notification.id == data.notificationId,
                Notification.user_id == current_user.id,
            )
            .execution_options(synchronize_session=False)
        )
        return MessageResponse(message="Notification deleted successfully.")

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid request payload. Provide notificationId or deleteAll."
    )
