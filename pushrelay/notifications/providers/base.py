from typing import Protocol
from pushrelay.notifications.types import ProviderMessage


class NotificationProvider(Protocol):
    async def send(self, message: ProviderMessage) -> str:
        """Deliver one message and return the provider's message id.

        Raises ``ProviderError`` when the provider rejects the message.
        """
        ...
