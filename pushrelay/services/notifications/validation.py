from typing import Any, Mapping, Optional

from pushrelay.notifications.errors import MissingContent, MissingToken
from pushrelay.notifications.types import DeliveryRequest
from pushrelay.services.notifications.builder import request_from_message

MISSING_MESSAGE_OR_TOKEN = "Invalid request: missing message or token"
MISSING_CONTENT = "Invalid request: missing notification or data"
MISSING_CHAT_FIELDS = "Invalid request: missing token, title, or body"
MISSING_RECORD_FIELDS = "Invalid notification request: missing required fields"


def validate_request(
    request: DeliveryRequest,
    *,
    missing_token: str = MISSING_MESSAGE_OR_TOKEN,
    missing_content: str = MISSING_CONTENT,
) -> DeliveryRequest:
    if not request.recipient_token:
        raise MissingToken(missing_token)
    if not request.notification and not request.data:
        raise MissingContent(missing_content)
    return request


def validate_envelope(payload: Optional[Mapping[str, Any]]) -> DeliveryRequest:
    """Generic entry point: ``{"message": {...}}`` with at least a token."""
    message = (payload or {}).get("message")
    if not isinstance(message, Mapping) or not message.get("token"):
        raise MissingToken(MISSING_MESSAGE_OR_TOKEN)
    return validate_request(request_from_message(message))


def validate_chat_fields(token: Optional[str], title: Optional[str], body: Optional[str]) -> None:
    if not token:
        raise MissingToken(MISSING_CHAT_FIELDS)
    if not title or not body:
        raise MissingContent(MISSING_CHAT_FIELDS)
