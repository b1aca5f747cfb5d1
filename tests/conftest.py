import json

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from shopdesk.core.push_client import PushClient
from shopdesk.db.base import Base
from shopdesk.db.models import Shop, User, Order, OrderStatus, new_id, utcnow
from shopdesk.services.notification import NotificationDispatcher


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def shop_owner(db_session):
    owner = User(id="owner-1", display_name="Ada", fcm_token="owner-device-token")
    db_session.add(owner)
    await db_session.commit()
    return owner


@pytest.fixture
async def customer(db_session):
    user = User(id="customer-1", display_name="Bola", fcm_token="customer-device-token")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def active_shop(db_session, shop_owner):
    shop = Shop(
        id="shop-1",
        owner_id=shop_owner.id,
        name="Test Poultry",
        address="12 Market Road",
        phone="08000000000",
        email="shop@example.com",
        is_active=True,
    )
    db_session.add(shop)
    await db_session.commit()
    await db_session.refresh(shop)
    return shop


@pytest.fixture
def make_order(db_session):
    async def _make_order(shop_id: str, **fields) -> Order:
        fields.setdefault("status", OrderStatus.PENDING.value)
        fields.setdefault("created_at", utcnow())
        order = Order(id=fields.pop("id", new_id()), shop_id=shop_id, items=[], **fields)
        db_session.add(order)
        await db_session.commit()
        return order

    return _make_order


class RecordingGateway:
    """Stands in for the push gateway and keeps every payload it receives."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append({
            "headers": dict(request.headers),
            "payload": json.loads(request.content),
        })
        return httpx.Response(self.status_code, json={"success": int(self.status_code == 200)})


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
async def push(gateway):
    client = PushClient(
        api_url="https://push.test/send",
        server_key="test-server-key",
        transport=httpx.MockTransport(gateway),
    )
    yield client
    await client.close()


@pytest.fixture
def dispatcher(session_factory, push):
    return NotificationDispatcher(session_factory=session_factory, client=push)
