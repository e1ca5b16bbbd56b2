import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pushrelay.core.config import settings
from pushrelay.models.models import NotificationRecordMixin
from pushrelay.notifications.config import NotificationsConfig
from pushrelay.notifications.errors import ValidationError
from pushrelay.notifications.providers.base import NotificationProvider
from pushrelay.notifications.providers.fcm import FCMNotificationProvider
from pushrelay.notifications.providers.log_only import LogNotificationProvider
from pushrelay.notifications.types import DispatchOutcome, MessageOrigin
from pushrelay.services.notifications.builder import (
    build_message,
    request_from_chat,
    request_from_record,
)
from pushrelay.services.notifications.dispatcher import dispatch, rejected_outcome
from pushrelay.services.notifications.recorder import claim_record, record_outcome
from pushrelay.services.notifications.validation import (
    MISSING_CHAT_FIELDS,
    MISSING_RECORD_FIELDS,
    validate_chat_fields,
    validate_envelope,
    validate_request,
)

logger = logging.getLogger("notifications")


def build_provider(config: NotificationsConfig) -> NotificationProvider:
    if config.provider == "fcm":
        return FCMNotificationProvider(
            config.fcm_project_id,
            credentials_file=config.fcm_credentials_file,
            timeout_s=config.fcm_timeout_s,
        )
    return LogNotificationProvider()


class NotificationService:
    def __init__(
        self,
        config: NotificationsConfig | None = None,
        provider: NotificationProvider | None = None,
    ) -> None:
        self.config = config or NotificationsConfig.from_settings(settings)
        self.provider = provider or build_provider(self.config)

    async def send_message(self, payload: Optional[Mapping[str, Any]]) -> DispatchOutcome:
        """Generic entry point. Raises ValidationError before touching the provider."""
        request = validate_envelope(payload)
        notification = request.notification or {}
        logger.info(
            "sending push token=%s... title=%s body=%s",
            request.recipient_token[:20], notification.get("title"), notification.get("body"),
        )
        return await dispatch(self.provider, build_message(request, MessageOrigin.GENERIC, self.config))

    async def send_chat(
        self,
        token: Optional[str],
        title: Optional[str],
        body: Optional[str],
        chat_room_id: Optional[str] = None,
        sender_name: Optional[str] = None,
        sender_photo_url: Optional[str] = None,
    ) -> DispatchOutcome:
        validate_chat_fields(token, title, body)
        request = validate_request(
            request_from_chat(token, title, body, chat_room_id, sender_name, sender_photo_url),
            missing_token=MISSING_CHAT_FIELDS,
            missing_content=MISSING_CHAT_FIELDS,
        )
        logger.info("sending chat push token=%s... room=%s", request.recipient_token[:20], chat_room_id)
        return await dispatch(self.provider, build_message(request, MessageOrigin.CHAT, self.config))

    async def process_record(
        self, session: AsyncSession, model: type[NotificationRecordMixin], record_id: UUID
    ) -> Optional[DispatchOutcome]:
        """Deliver a stored record at most once and persist the outcome on it.

        Returns None when nothing was done (missing, locked or already processed).
        Records failing validation are marked failed without a provider call.
        """
        record = await claim_record(session, model, record_id)
        if record is None:
            await session.rollback()
            return None
        try:
            request = validate_request(
                request_from_record(record),
                missing_token=MISSING_RECORD_FIELDS,
                missing_content=MISSING_RECORD_FIELDS,
            )
        except ValidationError as e:
            logger.error("record %s/%s rejected: %s", model.__tablename__, record_id, e.message)
            outcome = rejected_outcome(e)
        else:
            outcome = await dispatch(self.provider, build_message(request, MessageOrigin.RECORD, self.config))
        applied = await record_outcome(session, model, record.id, outcome)
        await session.commit()
        return outcome if applied else None


_service: Optional[NotificationService] = None


def init_notification_service(service: NotificationService | None = None) -> NotificationService:
    global _service
    _service = service or NotificationService()
    return _service


def get_notification_service() -> NotificationService:
    if _service is None:
        return init_notification_service()
    return _service


def reset_notification_service() -> None:
    global _service
    _service = None
