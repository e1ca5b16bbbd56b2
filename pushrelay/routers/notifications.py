import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.ext.asyncio import AsyncSession

from pushrelay.core.config import settings
from pushrelay.core.db import get_session
from pushrelay.models.models import FcmRequest, NotificationRecordMixin, NotificationRequest
from pushrelay.notifications.errors import MissingContent, MissingToken, ValidationError
from pushrelay.notifications.types import DispatchOutcome, ErrorKind
from pushrelay.schemas.notifications import (
    ChatNotificationErrorOut,
    ChatNotificationIn,
    ChatNotificationOut,
    InvalidRequestOut,
    NotificationRecordCreatedOut,
    NotificationRecordIn,
    SendNotificationErrorOut,
    SendNotificationIn,
    SendNotificationOut,
)
from pushrelay.services.notifications.service import NotificationService, get_notification_service
from pushrelay.services.notifications.validation import MISSING_CHAT_FIELDS, MISSING_MESSAGE_OR_TOKEN
from workers.tasks import TRIGGERS

logger = logging.getLogger("uvicorn.error")

# endpoint name -> rejection raised when its body does not parse
_BODY_REJECTIONS = {
    "send_notification": lambda: MissingToken(MISSING_MESSAGE_OR_TOKEN),
    "send_chat_notification": lambda: MissingContent(MISSING_CHAT_FIELDS),
}


class PushRoute(APIRoute):
    """Answers unparseable bodies on the push endpoints with their own 400 body instead of a 422."""

    def get_route_handler(self):
        handler = super().get_route_handler()
        rejection = _BODY_REJECTIONS.get(self.name)
        if rejection is None:
            return handler

        async def _handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as e:
                logger.warning("push request body rejected path=%s errors=%s", request.url.path, e.errors())
                return _invalid(request, rejection())

        return _handler


router = APIRouter(tags=["notifications"], route_class=PushRoute)

_ERROR_MESSAGES = {
    ErrorKind.INVALID_TOKEN: "Invalid FCM token",
    ErrorKind.UNREGISTERED_TOKEN: "FCM token not registered",
    ErrorKind.INVALID_ARGUMENT: "Invalid FCM message format",
}


def _respond(request: Request, status_code: int, body=None) -> Response:
    headers = settings.cors_headers(request.headers.get("origin"))
    if body is None:
        return Response(status_code=status_code, headers=headers)
    content = body.model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _invalid(request: Request, e: ValidationError) -> Response:
    logger.warning("push request rejected kind=%s reason=%s", e.kind.value, e.message)
    return _respond(request, e.kind.status_code, InvalidRequestOut(error=e.message))


@router.options("/sendNotification")
@router.options("/sendChatNotification")
async def preflight(request: Request):
    return _respond(request, 200)


@router.post("/sendNotification", response_model=SendNotificationOut)
async def send_notification(
    request: Request,
    payload: SendNotificationIn | None = None,
    service: NotificationService = Depends(get_notification_service),
):
    payload = payload or SendNotificationIn()
    try:
        outcome = await service.send_message(payload.model_dump())
    except ValidationError as e:
        return _invalid(request, e)
    if outcome.succeeded:
        return _respond(request, 200, SendNotificationOut(message_id=outcome.provider_message_id, timestamp=outcome.iso_timestamp))
    kind = outcome.error_kind or ErrorKind.UNKNOWN
    return _respond(
        request,
        400 if kind.is_client_error else 500,
        SendNotificationErrorOut(
            error=_ERROR_MESSAGES.get(kind, "Unknown error"),
            code=outcome.error_code,
            details=outcome.error_detail,
        ),
    )


@router.post("/sendChatNotification", response_model=ChatNotificationOut)
async def send_chat_notification(
    request: Request,
    payload: ChatNotificationIn | None = None,
    service: NotificationService = Depends(get_notification_service),
):
    payload = payload or ChatNotificationIn()
    try:
        outcome = await service.send_chat(
            payload.token,
            payload.title,
            payload.body,
            chat_room_id=payload.chat_room_id,
            sender_name=payload.sender_name,
            sender_photo_url=payload.sender_photo_url,
        )
    except ValidationError as e:
        return _invalid(request, e)
    if outcome.succeeded:
        return _respond(
            request,
            200,
            ChatNotificationOut(
                message_id=outcome.provider_message_id,
                timestamp=outcome.iso_timestamp,
                chat_room_id=payload.chat_room_id,
            ),
        )
    return _chat_error(request, outcome)


def _chat_error(request: Request, outcome: DispatchOutcome) -> Response:
    kind = outcome.error_kind or ErrorKind.UNKNOWN
    if kind in (ErrorKind.INVALID_TOKEN, ErrorKind.UNREGISTERED_TOKEN):
        message = _ERROR_MESSAGES[kind]
    else:
        message = outcome.error_detail or "Unknown error"
    return _respond(
        request,
        kind.status_code,
        ChatNotificationErrorOut(error=message, code=outcome.error_code, timestamp=outcome.iso_timestamp),
    )


async def _create_record(
    session: AsyncSession, model: type[NotificationRecordMixin], payload: NotificationRecordIn
) -> NotificationRecordCreatedOut:
    record = model(**payload.model_dump())
    session.add(record)
    await session.commit()
    await session.refresh(record)
    collection = model.__tablename__
    try:
        TRIGGERS[collection].apply_async(args=[str(record.id)], queue="notifications")
    except Exception as e:
        # the record stays unprocessed; re-enqueue it from the store once the broker is back
        logger.warning("enqueue failed collection=%s id=%s reason=%s", collection, record.id, e)
    return NotificationRecordCreatedOut(id=str(record.id), collection=collection)


@router.post("/notification_requests", response_model=NotificationRecordCreatedOut, status_code=201)
async def create_notification_request(
    payload: NotificationRecordIn,
    session: AsyncSession = Depends(get_session),
):
    return await _create_record(session, NotificationRequest, payload)


@router.post("/fcm_requests", response_model=NotificationRecordCreatedOut, status_code=201)
async def create_fcm_request(
    payload: NotificationRecordIn,
    session: AsyncSession = Depends(get_session),
):
    return await _create_record(session, FcmRequest, payload)
