import pytest
import httpx
from sqlalchemy import select

from pushrelay.core.config import settings
from pushrelay.models.models import FcmRequest, NotificationRequest
from tests.fixtures import chat_payload, generic_payload, record_fields

CORS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST",
    "access-control-allow-headers": "Content-Type",
}


def _assert_cors(resp: httpx.Response) -> None:
    for key, value in CORS.items():
        assert resp.headers[key] == value


@pytest.mark.asyncio
async def test_send_notification_success(client: httpx.AsyncClient, provider):
    resp = await client.post("/v1/sendNotification", json=generic_payload())
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["messageId"] == "msg-1"
    assert body["timestamp"].endswith("Z")
    assert set(body) == {"success", "messageId", "timestamp"}
    _assert_cors(resp)
    assert provider.sent[0]["token"] == generic_payload()["message"]["token"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"message": {"notification": {"title": "t"}}}])
async def test_send_notification_missing_token(client: httpx.AsyncClient, provider, payload):
    resp = await client.post("/v1/sendNotification", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request: missing message or token"}
    assert provider.sent == []


@pytest.mark.asyncio
async def test_send_notification_without_body(client: httpx.AsyncClient, provider):
    resp = await client.post("/v1/sendNotification")
    assert resp.status_code == 400
    assert provider.sent == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code,status,error",
    [
        ("messaging/invalid-registration-token", 400, "Invalid FCM token"),
        ("messaging/registration-token-not-registered", 400, "FCM token not registered"),
        ("messaging/invalid-argument", 400, "Invalid FCM message format"),
        ("messaging/internal-error", 500, "Unknown error"),
    ],
)
async def test_send_notification_provider_errors(client: httpx.AsyncClient, provider, code, status, error):
    provider.fail_with(code, "provider said no")
    resp = await client.post("/v1/sendNotification", json=generic_payload())
    assert resp.status_code == status
    assert resp.json() == {"error": error, "code": code, "details": "provider said no"}
    _assert_cors(resp)


@pytest.mark.asyncio
async def test_chat_notification_success(client: httpx.AsyncClient, provider):
    resp = await client.post("/v1/sendChatNotification", json=chat_payload())
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["messageId"] == "msg-1"
    assert body["chatRoomId"] == "room-42"
    sent = provider.sent[0]
    assert sent["data"]["type"] == "chat_message"
    assert sent["data"]["senderName"] == "Sam"
    assert sent["notification"] == {"title": "New message", "body": "See you at 5"}


@pytest.mark.asyncio
async def test_chat_notification_missing_body(client: httpx.AsyncClient, provider):
    payload = chat_payload()
    payload.pop("body")
    resp = await client.post("/v1/sendChatNotification", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request: missing token, title, or body"}
    assert provider.sent == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code,status,error",
    [
        ("messaging/invalid-registration-token", 400, "Invalid FCM token"),
        ("messaging/registration-token-not-registered", 404, "FCM token not registered"),
        ("messaging/server-unavailable", 500, "try again later"),
    ],
)
async def test_chat_notification_provider_errors(client: httpx.AsyncClient, provider, code, status, error):
    provider.fail_with(code, "try again later")
    resp = await client.post("/v1/sendChatNotification", json=chat_payload())
    assert resp.status_code == status
    body = resp.json()
    assert body["error"] == error
    assert body["code"] == code
    assert body["timestamp"].endswith("Z")


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/v1/sendNotification", "/v1/sendChatNotification"])
async def test_preflight(client: httpx.AsyncClient, provider, path):
    resp = await client.options(path)
    assert resp.status_code == 200
    assert resp.content == b""
    _assert_cors(resp)
    assert provider.sent == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["not", "an", "object"], "plain", 42])
async def test_send_notification_malformed_body(client: httpx.AsyncClient, provider, body):
    resp = await client.post("/v1/sendNotification", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request: missing message or token"}
    _assert_cors(resp)
    assert provider.sent == []


@pytest.mark.asyncio
async def test_send_notification_unparseable_json(client: httpx.AsyncClient, provider):
    resp = await client.post(
        "/v1/sendNotification", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request: missing message or token"}
    _assert_cors(resp)


@pytest.mark.asyncio
async def test_chat_notification_numeric_token_is_accepted(client: httpx.AsyncClient, provider):
    resp = await client.post("/v1/sendChatNotification", json=chat_payload(token=12345))
    assert resp.status_code == 200
    _assert_cors(resp)
    assert provider.sent[0]["token"] == "12345"


@pytest.mark.asyncio
@pytest.mark.parametrize("fields", [{"title": {"text": "hi"}}, {"token": ["a", "b"]}])
async def test_chat_notification_malformed_fields(client: httpx.AsyncClient, provider, fields):
    resp = await client.post("/v1/sendChatNotification", json=chat_payload(**fields))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request: missing token, title, or body"}
    _assert_cors(resp)
    assert provider.sent == []


@pytest.mark.asyncio
async def test_listed_origin_is_echoed(client: httpx.AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "CORS_ORIGINS", "https://a.example, https://b.example")
    resp = await client.post(
        "/v1/sendNotification", json=generic_payload(), headers={"Origin": "https://b.example"}
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "https://b.example"
    assert resp.headers["vary"] == "Origin"

    resp = await client.options("/v1/sendChatNotification", headers={"Origin": "https://a.example"})
    assert resp.headers["access-control-allow-origin"] == "https://a.example"


@pytest.mark.asyncio
async def test_unlisted_origin_gets_no_allow_origin(client: httpx.AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "CORS_ORIGINS", "https://a.example, https://b.example")
    resp = await client.options("/v1/sendNotification", headers={"Origin": "https://evil.example"})
    assert resp.status_code == 200
    assert "access-control-allow-origin" not in resp.headers
    assert resp.headers["access-control-allow-methods"] == "GET, POST"


@pytest.mark.asyncio
async def test_create_notification_request_enqueues(client: httpx.AsyncClient, session, monkeypatch):
    from workers.tasks import process_notification_request

    calls = []
    monkeypatch.setattr(process_notification_request, "apply_async", lambda args, queue: calls.append((args, queue)))

    resp = await client.post("/v1/notification_requests", json=record_fields())
    assert resp.status_code == 201
    record_id = resp.json()["id"]
    assert calls == [([record_id], "notifications")]

    record = (await session.execute(select(NotificationRequest))).scalar_one()
    assert str(record.id) == record_id
    assert record.processed is False
    assert record.to == "tok"


@pytest.mark.asyncio
async def test_create_fcm_request_survives_broker_outage(client: httpx.AsyncClient, session, monkeypatch):
    from workers.tasks import process_fcm_request

    def _down(args, queue):
        raise ConnectionError("broker down")

    monkeypatch.setattr(process_fcm_request, "apply_async", _down)
    resp = await client.post("/v1/fcm_requests", json=record_fields())
    assert resp.status_code == 201
    assert resp.json()["collection"] == "fcm_requests"
    record = (await session.execute(select(FcmRequest))).scalar_one()
    assert record.processed is False


@pytest.mark.asyncio
async def test_root(client: httpx.AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Push Relay API"
