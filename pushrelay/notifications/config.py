from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationsConfig:
    provider: str = "log"
    fcm_project_id: str = ""
    fcm_credentials_file: str = ""
    fcm_timeout_s: float = 10.0
    default_channel_id: str = "default_notifications"
    chat_channel_id: str = "chat_messages"

    @classmethod
    def from_settings(cls, settings) -> "NotificationsConfig":
        return cls(
            provider=settings.NOTIFY_PROVIDER,
            fcm_project_id=settings.FCM_PROJECT_ID,
            fcm_credentials_file=settings.FCM_CREDENTIALS_FILE,
            fcm_timeout_s=settings.FCM_TIMEOUT_S,
            default_channel_id=settings.PUSH_DEFAULT_CHANNEL_ID,
            chat_channel_id=settings.PUSH_CHAT_CHANNEL_ID,
        )
