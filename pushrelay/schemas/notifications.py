from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SendNotificationIn(BaseModel):
    # validated by hand so a missing envelope answers 400 rather than 422
    message: Any = None


class ChatNotificationIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    chat_room_id: Optional[str] = Field(default=None, alias="chatRoomId")
    sender_name: Optional[str] = Field(default=None, alias="senderName")
    sender_photo_url: Optional[str] = Field(default=None, alias="senderPhotoURL")

    @field_validator("token", "title", "body", "chat_room_id", "sender_name", "sender_photo_url", mode="before")
    @classmethod
    def _scalar_as_str(cls, value: Any) -> Any:
        # clients send numeric room ids and tokens; objects and lists still fail
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value


class SendNotificationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message_id: str = Field(alias="messageId")
    timestamp: str


class ChatNotificationOut(SendNotificationOut):
    chat_room_id: Optional[str] = Field(default=None, alias="chatRoomId")


class InvalidRequestOut(BaseModel):
    error: str


class SendNotificationErrorOut(BaseModel):
    error: str
    code: Optional[str] = None
    details: Optional[str] = None


class ChatNotificationErrorOut(BaseModel):
    error: str
    code: Optional[str] = None
    timestamp: str


class NotificationRecordIn(BaseModel):
    to: Optional[str] = None
    notification: Optional[Dict[str, Any]] = None
    data: Optional[Dict[str, Any]] = None
    android: Optional[Dict[str, Any]] = None
    apns: Optional[Dict[str, Any]] = None


class NotificationRecordCreatedOut(BaseModel):
    id: str
    collection: str
