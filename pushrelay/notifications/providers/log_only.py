import logging
from uuid import uuid4

from pushrelay.notifications.types import ProviderMessage


class LogNotificationProvider:
    """Accepts every message without delivering it; handy for local runs."""

    def __init__(self) -> None:
        self.sent: list[ProviderMessage] = []

    async def send(self, message: ProviderMessage) -> str:
        message_id = f"log-{uuid4().hex[:12]}"
        self.sent.append(message)
        notification = message.get("notification") or {}
        logging.getLogger("notifications").info(
            "notify %s %s id=%s", (message.get("token") or "")[:20], notification.get("title"), message_id
        )
        return message_id
