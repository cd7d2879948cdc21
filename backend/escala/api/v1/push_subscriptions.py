"""Push subscription registration."""
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from escala.db.base import get_db
from escala.core.deps import get_current_user
from escala.models.user import User
from escala.models.notification import PushSubscription
from escala.schemas.common import SuccessResponse
from escala.schemas.notification import PushSubscriptionSave

router = APIRouter()


@router.post("", response_model=SuccessResponse)
async def save_push_subscription(
    data: PushSubscriptionSave,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Upsert the caller's subscription keyed on (user, endpoint)."""
    subscription = data.subscription.model_dump()
    result = await db.execute(
        select(PushSubscription).where(
            PushSubscription.user_id == current_user.id,
            PushSubscription.endpoint == data.subscription.endpoint,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is None:
        db.add(PushSubscription(
            user_id=current_user.id,
            endpoint=data.subscription.endpoint,
            subscription_data=subscription,
        ))
    else:
        existing.subscription_data = subscription
    await db.flush()
    return SuccessResponse(success=True)
