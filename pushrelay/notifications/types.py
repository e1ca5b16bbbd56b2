from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

# FCM HTTP v1 message body, e.g. {"token": ..., "notification": {...}, "data": {...}}
ProviderMessage = Dict[str, Any]

PLATFORM_BLOCKS = ("android", "apns", "webpush", "fcm_options")


class ErrorKind(str, Enum):
    MISSING_TOKEN = "missing_token"
    MISSING_CONTENT = "missing_content"
    INVALID_TOKEN = "invalid_token"
    UNREGISTERED_TOKEN = "unregistered_token"
    INVALID_ARGUMENT = "invalid_argument"
    UNKNOWN = "unknown"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


_STATUS_CODES = {
    ErrorKind.MISSING_TOKEN: 400,
    ErrorKind.MISSING_CONTENT: 400,
    ErrorKind.INVALID_TOKEN: 400,
    ErrorKind.UNREGISTERED_TOKEN: 404,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.UNKNOWN: 500,
}


class MessageOrigin(str, Enum):
    GENERIC = "generic"
    CHAT = "chat"
    RECORD = "record"


@dataclass(frozen=True)
class DeliveryRequest:
    recipient_token: str
    notification: Optional[Dict[str, Any]] = None
    data: Dict[str, str] = field(default_factory=dict)
    platform_overrides: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchOutcome:
    succeeded: bool
    timestamp: datetime
    provider_message_id: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_code: Optional[str] = None
    error_detail: Optional[str] = None

    @property
    def iso_timestamp(self) -> str:
        return self.timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
