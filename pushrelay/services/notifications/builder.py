"""Turn inbound request shapes into FCM v1 messages.

Every builder here is a pure function of its input: no clock, no randomness.
"""
import copy
import json
from typing import Any, Mapping, Optional

from pushrelay.notifications.config import NotificationsConfig
from pushrelay.notifications.types import (
    PLATFORM_BLOCKS,
    DeliveryRequest,
    MessageOrigin,
    ProviderMessage,
)

CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"
CHAT_MESSAGE_TYPE = "chat_message"
CHAT_CATEGORY = "CHAT_MESSAGE"
DEFAULT_SOUND = "default"


def _as_token(value: Any) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value)


def _as_dict(value: Any) -> Optional[dict]:
    if isinstance(value, Mapping) and value:
        return dict(value)
    return None


def _as_data_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): _as_data_value(v) for k, v in value.items()}


def request_from_message(message: Mapping[str, Any]) -> DeliveryRequest:
    return DeliveryRequest(
        recipient_token=_as_token(message.get("token")),
        notification=_as_dict(message.get("notification")),
        data=string_map(message.get("data")),
        platform_overrides={k: message[k] for k in PLATFORM_BLOCKS if message.get(k)},
    )


def request_from_chat(
    token: Optional[str],
    title: Optional[str],
    body: Optional[str],
    chat_room_id: Optional[str] = None,
    sender_name: Optional[str] = None,
    sender_photo_url: Optional[str] = None,
) -> DeliveryRequest:
    return DeliveryRequest(
        recipient_token=_as_token(token),
        notification={"title": title, "body": body} if title or body else None,
        data={
            "chatRoomId": chat_room_id or "",
            "senderName": sender_name or "",
            "senderPhotoURL": sender_photo_url or "",
            "click_action": CLICK_ACTION,
        },
    )


def request_from_record(record: Any) -> DeliveryRequest:
    """Records use ``to`` for the recipient; everything else mirrors the message."""
    return DeliveryRequest(
        recipient_token=_as_token(record.to),
        notification=_as_dict(record.notification),
        data=string_map(record.data),
        platform_overrides={
            k: getattr(record, k) for k in ("android", "apns") if getattr(record, k, None)
        },
    )


def _android_defaults(notification: Optional[dict], origin: MessageOrigin, config: NotificationsConfig) -> dict:
    if not notification:
        return {"priority": "HIGH"}
    block = {
        "channel_id": config.chat_channel_id if origin is MessageOrigin.CHAT else config.default_channel_id,
        "sound": DEFAULT_SOUND,
    }
    if origin is MessageOrigin.CHAT:
        block["click_action"] = CLICK_ACTION
    return {"priority": "HIGH", "notification": block}


def _apns_defaults(notification: Optional[dict], origin: MessageOrigin) -> dict:
    # data-only messages wake the app silently
    if not notification:
        return {"payload": {"aps": {"content-available": 1}}}
    aps: dict[str, Any] = {
        "alert": {"title": notification.get("title"), "body": notification.get("body")},
        "badge": 1,
        "sound": DEFAULT_SOUND,
    }
    if origin is MessageOrigin.CHAT:
        aps["category"] = CHAT_CATEGORY
    return {"payload": {"aps": aps}}


def build_message(
    request: DeliveryRequest,
    origin: MessageOrigin = MessageOrigin.GENERIC,
    config: Optional[NotificationsConfig] = None,
) -> ProviderMessage:
    config = config or NotificationsConfig()
    message: ProviderMessage = {"token": request.recipient_token}
    if request.notification:
        message["notification"] = copy.deepcopy(request.notification)

    data = dict(request.data)
    if origin is MessageOrigin.CHAT:
        data["type"] = CHAT_MESSAGE_TYPE
    if data:
        message["data"] = data

    overrides = request.platform_overrides
    message["android"] = copy.deepcopy(overrides.get("android")) or _android_defaults(request.notification, origin, config)
    message["apns"] = copy.deepcopy(overrides.get("apns")) or _apns_defaults(request.notification, origin)
    for key in ("webpush", "fcm_options"):
        if overrides.get(key):
            message[key] = copy.deepcopy(overrides[key])
    return message
