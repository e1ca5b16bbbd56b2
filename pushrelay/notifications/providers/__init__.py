from pushrelay.notifications.providers.base import NotificationProvider
from pushrelay.notifications.providers.log_only import LogNotificationProvider
from pushrelay.notifications.providers.fcm import FCMNotificationProvider

__all__ = [
    "NotificationProvider",
    "LogNotificationProvider",
    "FCMNotificationProvider",
]
