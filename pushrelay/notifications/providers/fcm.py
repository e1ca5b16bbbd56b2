"""Firebase Cloud Messaging provider speaking the HTTP v1 API.

Errors come back as ``{"error": {"status": ..., "message": ..., "details": [...]}}``;
they are normalized into the ``messaging/...`` codes the dispatcher classifies.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx
import google.auth
from google.auth.transport import requests as grequests
from google.oauth2 import service_account

from pushrelay.notifications.errors import ProviderError
from pushrelay.notifications.types import ProviderMessage

logger = logging.getLogger("notifications")

FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"

INVALID_REGISTRATION_TOKEN = "messaging/invalid-registration-token"
TOKEN_NOT_REGISTERED = "messaging/registration-token-not-registered"
INVALID_ARGUMENT = "messaging/invalid-argument"
UNKNOWN_ERROR = "messaging/unknown-error"
NETWORK_ERROR = "app/network-error"

# FcmError.errorCode -> code
_FCM_ERROR_CODES = {
    "UNREGISTERED": TOKEN_NOT_REGISTERED,
    "SENDER_ID_MISMATCH": "messaging/mismatched-credential",
    "QUOTA_EXCEEDED": "messaging/message-rate-exceeded",
    "UNAVAILABLE": "messaging/server-unavailable",
    "INTERNAL": "messaging/internal-error",
    "THIRD_PARTY_AUTH_ERROR": "messaging/third-party-auth-error",
    "APNS_AUTH_ERROR": "messaging/third-party-auth-error",
}

# google.rpc status -> code, used when no FcmError detail is present
_STATUS_CODES = {
    "NOT_FOUND": TOKEN_NOT_REGISTERED,
    "UNAUTHENTICATED": "messaging/authentication-error",
    "PERMISSION_DENIED": "messaging/authentication-error",
    "RESOURCE_EXHAUSTED": "messaging/message-rate-exceeded",
    "UNAVAILABLE": "messaging/server-unavailable",
    "INTERNAL": "messaging/internal-error",
}


def load_credentials(credentials_file: str = "") -> tuple[Any, Optional[str]]:
    if credentials_file:
        creds = service_account.Credentials.from_service_account_file(credentials_file, scopes=[FCM_SCOPE])
        return creds, creds.project_id
    creds, project_id = google.auth.default(scopes=[FCM_SCOPE])
    return creds, project_id


def error_from_response(resp: httpx.Response) -> ProviderError:
    try:
        body = resp.json()
    except ValueError:
        body = None
    payload = body.get("error") if isinstance(body, dict) else None
    if not isinstance(payload, dict):
        payload = {}
    status = payload.get("status") or ""
    message = payload.get("message") or resp.text or f"fcm_http_{resp.status_code}"

    fcm_code = None
    for detail in payload.get("details") or []:
        if isinstance(detail, dict) and str(detail.get("@type", "")).endswith("FcmError"):
            fcm_code = detail.get("errorCode")

    if fcm_code == "INVALID_ARGUMENT" or (fcm_code is None and status == "INVALID_ARGUMENT"):
        # v1 reports malformed tokens as a plain INVALID_ARGUMENT
        if "registration token" in message.lower():
            return ProviderError(INVALID_REGISTRATION_TOKEN, message)
        return ProviderError(INVALID_ARGUMENT, message)
    code = _FCM_ERROR_CODES.get(fcm_code or "") or _STATUS_CODES.get(status) or UNKNOWN_ERROR
    return ProviderError(code, message)


class FCMNotificationProvider:
    def __init__(
        self,
        project_id: str = "",
        credentials: Any = None,
        *,
        credentials_file: str = "",
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if credentials is None:
            credentials, detected_project = load_credentials(credentials_file)
            project_id = project_id or detected_project or ""
        if not project_id:
            raise ValueError("FCM_PROJECT_ID_not_configured")
        self.project_id = project_id
        self.credentials = credentials
        self.timeout_s = timeout_s
        self.transport = transport

    @property
    def send_url(self) -> str:
        return FCM_SEND_URL.format(project_id=self.project_id)

    async def _access_token(self) -> str:
        if not self.credentials.valid:
            await asyncio.to_thread(self.credentials.refresh, grequests.Request())
        return self.credentials.token

    async def send(self, message: ProviderMessage) -> str:
        token = await self._access_token()
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                resp = await client.post(
                    self.send_url,
                    json={"message": message},
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.warning("fcm transport failure project=%s reason=%s", self.project_id, e)
            raise ProviderError(NETWORK_ERROR, str(e) or e.__class__.__name__) from e
        if resp.status_code != 200:
            raise error_from_response(resp)
        # "projects/<project>/messages/<id>"
        return resp.json()["name"]
