"""
Web push delivery.

Push is always best effort: ``deliver_to_user`` logs every failure, deletes
subscriptions whose endpoint reports 404/410, and never raises.
"""
import json
import logging
from typing import Any, Optional, Protocol

from fastapi.concurrency import run_in_threadpool
from pywebpush import webpush, WebPushException
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from escala.core.config import settings
from escala.core.errors import DeliveryFailure, PushGone
from escala.models.notification import PushSubscription

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = (404, 410)


class PushSender(Protocol):
    async def send(self, subscription_info: dict[str, Any], payload: dict[str, Any]) -> None:
        ...


class WebPushSender:
    """Sends VAPID-signed web push messages with pywebpush."""

    def __init__(self, private_key: str, subject: str):
        self.private_key = private_key
        self.subject = subject

    def _send_sync(self, subscription_info: dict[str, Any], data: str) -> None:
        webpush(
            subscription_info=subscription_info,
            data=data,
            vapid_private_key=self.private_key,
            vapid_claims={"sub": self.subject},
        )

    async def send(self, subscription_info: dict[str, Any], payload: dict[str, Any]) -> None:
        endpoint = subscription_info.get("endpoint", "")
        try:
            await run_in_threadpool(self._send_sync, subscription_info, json.dumps(payload))
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code in GONE_STATUS_CODES:
                raise PushGone(endpoint, str(e), status_code) from e
            raise DeliveryFailure(endpoint, str(e), status_code) from e


def get_push_sender() -> Optional[PushSender]:
    """Dependency returning the configured sender, or None when VAPID keys are missing."""
    if not settings.VAPID_PUBLIC_KEY or not settings.VAPID_PRIVATE_KEY:
        return None
    return WebPushSender(settings.VAPID_PRIVATE_KEY, settings.VAPID_SUBJECT)


def _subscription_info(sub: PushSubscription) -> dict[str, Any]:
    data = sub.subscription_data
    if isinstance(data, str):
        data = json.loads(data)
    return {"endpoint": sub.endpoint, "keys": (data or {}).get("keys", {})}


async def deliver_to_user(
    db: AsyncSession,
    sender: Optional[PushSender],
    user_id: int,
    payload: dict[str, Any],
) -> int:
    """Push ``payload`` to every endpoint of ``user_id``. Returns the delivered count."""
    if sender is None:
        logger.warning("VAPID keys not set. Skipping push notification.")
        return 0

    try:
        result = await db.execute(
            select(PushSubscription).where(PushSubscription.user_id == user_id)
        )
        subscriptions = result.scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching push subscriptions for user {user_id}: {e}")
        return 0

    delivered = 0
    gone: list[str] = []
    for sub in subscriptions:
        try:
            await sender.send(_subscription_info(sub), payload)
            delivered += 1
        except PushGone:
            logger.info(f"Subscription for endpoint {sub.endpoint} has expired. Removing from DB.")
            gone.append(sub.endpoint)
        except DeliveryFailure as e:
            logger.error(f"Failed to send push notification to {sub.endpoint}: {e}")
        except Exception:
            logger.exception(f"Unexpected error sending push notification to {sub.endpoint}")

    if gone:
        try:
            await db.execute(
                delete(PushSubscription).where(
                    PushSubscription.user_id == user_id,
                    PushSubscription.endpoint.in_(gone),
                )
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to remove expired push subscriptions: {e}")

    return delivered
