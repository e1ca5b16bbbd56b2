import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pushrelay.models.models import NotificationRecordMixin, NotificationRequest

logger = logging.getLogger("notifications")


async def cleanup_expired(
    session: AsyncSession,
    model: type[NotificationRecordMixin] = NotificationRequest,
    *,
    retention_hours: int = 24,
    batch_size: int = 500,
    now: Optional[datetime] = None,
) -> int:
    """Delete up to ``batch_size`` records created before the retention window."""
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=retention_hours)
    res = await session.execute(select(model.id).where(model.created_at < cutoff).limit(batch_size))
    ids = [row[0] for row in res.all()]
    if not ids:
        logger.info("cleanup: no %s older than %s", model.__tablename__, cutoff.isoformat())
        return 0
    await session.execute(delete(model).where(model.id.in_(ids)))
    await session.commit()
    logger.info("cleanup: removed %d %s", len(ids), model.__tablename__)
    return len(ids)
