import asyncio

import httpx
import pytest
from sqlalchemy import select

from shopdesk.core.push_client import PushClient
from shopdesk.db.models import User
from shopdesk.services.notification import NotificationDispatcher, register_device_token


@pytest.mark.asyncio
async def test_push_client_posts_gateway_payload(push, gateway):
    ok = await push.send("device-1", "Hello", "World", {"type": "test", "count": 3})

    assert ok is True
    request = gateway.requests[0]
    assert request["payload"] == {
        "to": "device-1",
        "notification": {"title": "Hello", "body": "World"},
        "data": {"type": "test", "count": "3"},
    }
    assert request["headers"]["authorization"] == "key=test-server-key"


@pytest.mark.asyncio
async def test_push_client_reports_rejection(push, gateway):
    gateway.status_code = 401

    ok = await push.send("device-1", "Hello", "World")

    assert ok is False


@pytest.mark.asyncio
async def test_push_client_reports_transport_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = PushClient(api_url="https://push.test/send", server_key="k", transport=httpx.MockTransport(refuse))
    try:
        ok = await client.send("device-1", "Hello", "World")
    finally:
        await client.close()

    assert ok is False


@pytest.mark.asyncio
async def test_register_device_token_creates_and_updates(db_session):
    user = await register_device_token(db_session, "user-42", "token-a")
    assert user.fcm_token == "token-a"
    assert user.fcm_token_updated_at is not None

    await register_device_token(db_session, "user-42", "token-b")

    result = await db_session.execute(select(User).where(User.id == "user-42"))
    users = result.scalars().all()
    assert len(users) == 1
    assert users[0].fcm_token == "token-b"


@pytest.mark.asyncio
async def test_empty_token_means_no_send(db_session, dispatcher, gateway):
    db_session.add(User(id="silent", display_name="Silent", fcm_token=""))
    await db_session.commit()

    sent = await dispatcher.send_order_completed("silent", "order-1")

    assert sent is False
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_dispatch_isolates_failures(session_factory, push):
    dispatcher = NotificationDispatcher(session_factory=session_factory, client=push)

    async def broken():
        raise RuntimeError("gateway exploded")

    task = dispatcher.dispatch(broken())
    await dispatcher.drain()

    assert task.done()
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_dispatch_does_not_block_caller(session_factory, push):
    dispatcher = NotificationDispatcher(session_factory=session_factory, client=push)
    release = asyncio.Event()

    async def slow_send():
        await release.wait()
        return True

    dispatcher.dispatch(slow_send())
    assert dispatcher.pending == 1

    release.set()
    await dispatcher.drain()
    assert dispatcher.pending == 0
