import logging
from datetime import datetime, timezone
from typing import Optional

from pushrelay.notifications.errors import ProviderError, ValidationError
from pushrelay.notifications.providers.base import NotificationProvider
from pushrelay.notifications.types import DispatchOutcome, ErrorKind, ProviderMessage

logger = logging.getLogger("notifications")

_ERROR_KINDS = {
    "messaging/invalid-registration-token": ErrorKind.INVALID_TOKEN,
    "messaging/registration-token-not-registered": ErrorKind.UNREGISTERED_TOKEN,
    "messaging/invalid-argument": ErrorKind.INVALID_ARGUMENT,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify_error(code: Optional[str]) -> ErrorKind:
    return _ERROR_KINDS.get(code or "", ErrorKind.UNKNOWN)


def rejected_outcome(error: ValidationError) -> DispatchOutcome:
    return DispatchOutcome(
        succeeded=False,
        timestamp=_utcnow(),
        error_kind=error.kind,
        error_code=error.kind.value,
        error_detail=error.message,
    )


async def dispatch(provider: NotificationProvider, message: ProviderMessage) -> DispatchOutcome:
    """Hand one message to the provider and classify the result. Never raises."""
    token = str(message.get("token") or "")
    try:
        message_id = await provider.send(message)
    except ProviderError as e:
        kind = classify_error(e.code)
        logger.warning("push failed token=%s... code=%s kind=%s reason=%s", token[:20], e.code, kind.value, e.message)
        return DispatchOutcome(
            succeeded=False,
            timestamp=_utcnow(),
            error_kind=kind,
            error_code=e.code,
            error_detail=e.message,
        )
    except Exception as e:
        logger.exception("push failed token=%s... unexpected provider error", token[:20])
        return DispatchOutcome(
            succeeded=False,
            timestamp=_utcnow(),
            error_kind=ErrorKind.UNKNOWN,
            error_code=getattr(e, "code", None),
            error_detail=str(e) or e.__class__.__name__,
        )
    logger.info("push sent token=%s... id=%s", token[:20], message_id)
    return DispatchOutcome(succeeded=True, timestamp=_utcnow(), provider_message_id=message_id)
