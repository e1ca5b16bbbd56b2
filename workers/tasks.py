from .celery_app import celery
import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from pushrelay.core.config import settings
from pushrelay.models.models import FcmRequest, NotificationRecordMixin, NotificationRequest
from pushrelay.services.notifications.cleanup import cleanup_expired
from pushrelay.services.notifications.service import get_notification_service

logger = logging.getLogger("notifications")


async def _process(model: type[NotificationRecordMixin], record_id: str) -> dict:
    try:
        rid = UUID(str(record_id))
    except ValueError:
        return {"ok": False, "error": "invalid_record_id", "record_id": record_id}

    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with Session() as session:
            outcome = await get_notification_service().process_record(session, model, rid)
    finally:
        await engine.dispose()

    if outcome is None:
        return {"ok": True, "skipped": True, "record_id": record_id}
    if outcome.succeeded:
        return {"ok": True, "record_id": record_id, "message_id": outcome.provider_message_id}
    return {
        "ok": False,
        "record_id": record_id,
        "error_kind": outcome.error_kind.value if outcome.error_kind else None,
        "error": outcome.error_detail,
    }


@celery.task(name="tasks.process_notification_request")
def process_notification_request(record_id: str) -> dict:
    """Deliver a newly created notification_requests record."""
    logger.info("new notification request id=%s", record_id)
    return asyncio.run(_process(NotificationRequest, record_id))


@celery.task(name="tasks.process_fcm_request")
def process_fcm_request(record_id: str) -> dict:
    """Fallback path: same handling for records created in fcm_requests."""
    logger.info("new fcm request id=%s", record_id)
    return asyncio.run(_process(FcmRequest, record_id))


@celery.task(name="tasks.cleanup_notification_requests")
def cleanup_notification_requests() -> dict:
    """Delete notification requests older than the retention window."""

    async def _run() -> dict:
        engine = create_async_engine(settings.DATABASE_URL, echo=False)
        Session = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with Session() as session:
                try:
                    deleted = await cleanup_expired(
                        session,
                        NotificationRequest,
                        retention_hours=settings.CLEANUP_RETENTION_HOURS,
                        batch_size=settings.CLEANUP_BATCH_SIZE,
                    )
                except Exception as e:
                    await session.rollback()
                    logger.exception("cleanup of notification requests failed")
                    return {"ok": False, "error": str(e)}
        finally:
            await engine.dispose()
        return {"ok": True, "deleted": deleted}

    return asyncio.run(_run())


# collection name -> trigger task
TRIGGERS = {
    NotificationRequest.__tablename__: process_notification_request,
    FcmRequest.__tablename__: process_fcm_request,
}
