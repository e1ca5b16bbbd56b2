from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, DateTime, Text, JSON, Uuid
import uuid
from pushrelay.core.db import Base
from datetime import datetime, timezone
from typing import ClassVar


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationRecordMixin:
    """Columns shared by every collection a producer can drop push requests into.

    ``processed``, ``failed``, ``processed_at``, ``error``, ``error_code`` and the
    result column are written only by the outcome recorder.
    """

    # Name of the column holding the provider message id on success.
    result_field: ClassVar[str] = "fcm_response"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    to: Mapped[str | None] = mapped_column(Text, nullable=True)
    notification: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    android: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    apns: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    processed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    failed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)


class NotificationRequest(NotificationRecordMixin, Base):
    __tablename__ = "notification_requests"
    result_field = "fcm_response"
    fcm_response: Mapped[str | None] = mapped_column(Text, nullable=True)


class FcmRequest(NotificationRecordMixin, Base):
    """Fallback collection with the same schema; stores the id as ``message_id``."""

    __tablename__ = "fcm_requests"
    result_field = "message_id"
    message_id: Mapped[str | None] = mapped_column(Text, nullable=True)


# collection name -> model, as used by the trigger tasks
COLLECTIONS: dict[str, type[NotificationRecordMixin]] = {
    NotificationRequest.__tablename__: NotificationRequest,
    FcmRequest.__tablename__: FcmRequest,
}
