"""Single-transition bookkeeping for notification records.

A record moves from unprocessed to processed exactly once. ``claim_record`` is the
read side of the guard and ``record_outcome`` the conditional write; together they
absorb trigger re-deliveries for the same record.
"""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pushrelay.models.models import NotificationRecordMixin
from pushrelay.notifications.types import DispatchOutcome

logger = logging.getLogger("notifications")


async def claim_record(
    session: AsyncSession, model: type[NotificationRecordMixin], record_id: UUID
) -> Optional[NotificationRecordMixin]:
    """Load an unprocessed record and hold its row lock until the session commits.

    Returns None when the record is missing, already processed, or locked by a
    concurrent invocation (SKIP LOCKED). SQLite ignores the lock clause.
    """
    stmt = (
        select(model)
        .where(model.id == record_id)
        .with_for_update(skip_locked=True)
        .execution_options(populate_existing=True)
    )
    record = (await session.execute(stmt)).scalar_one_or_none()
    if record is None:
        logger.info("record %s/%s missing or locked, skipping", model.__tablename__, record_id)
        return None
    if record.processed:
        logger.info("record %s/%s already processed, skipping", model.__tablename__, record_id)
        return None
    return record


async def record_outcome(
    session: AsyncSession,
    model: type[NotificationRecordMixin],
    record_id: UUID,
    outcome: DispatchOutcome,
) -> bool:
    """Apply the terminal transition; returns False if the record was already processed."""
    values = {"processed": True, "processed_at": outcome.timestamp}
    if outcome.succeeded:
        values[model.result_field] = outcome.provider_message_id
    else:
        values["failed"] = True
        values["error"] = outcome.error_detail
        values["error_code"] = outcome.error_kind.value if outcome.error_kind else None
    stmt = (
        update(model)
        .where(model.id == record_id, model.processed.is_(False))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    applied = res.rowcount == 1
    if not applied:
        logger.warning("record %s/%s was processed concurrently, outcome dropped", model.__tablename__, record_id)
    return applied
