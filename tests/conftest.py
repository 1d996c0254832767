"""Pytest configuration and fixtures for async testing."""
from typing import Any, AsyncGenerator, Optional
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from creditledger import models  # noqa: F401  registers tables on Base.metadata
from creditledger.adapters.razorpay_adapter import RazorpayAdapter
from creditledger.api.deps import get_db, get_razorpay_adapter
from creditledger.config import settings
from creditledger.database import Base
from creditledger.main import app
from creditledger.models.package import Package
from tests.utils.factories import (
    TEST_BOT_SECRET,
    TEST_KEY_ID,
    TEST_KEY_SECRET,
    TEST_WEBHOOK_SECRET,
    PackageFactory,
    RazorpayOrderFactory,
)


def build_engine(db_path: Any, begin_statement: str = "BEGIN", foreign_keys: bool = False) -> AsyncEngine:
    """
    Create an aiosqlite engine with working SAVEPOINT support.

    pysqlite's own transaction handling breaks SAVEPOINT, so it is switched
    off and SQLAlchemy emits BEGIN itself. ``BEGIN IMMEDIATE`` serializes
    writers for the concurrency tests. SQLite ignores foreign keys unless
    ``foreign_keys`` turns them on per connection.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        if foreign_keys:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql(begin_statement)

    return engine


class FakeOrderBook:
    """In-memory stand-in for ``razorpay.Client().order``."""

    def __init__(self) -> None:
        self.orders: dict[str, dict[str, Any]] = {}

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        order = RazorpayOrderFactory.create(
            {
                "amount": data["amount"],
                "currency": data["currency"],
                "receipt": data["receipt"],
                "notes": dict(data.get("notes") or {}),
            }
        )
        self.orders[order["id"]] = order
        return order

    def fetch(self, order_id: str) -> dict[str, Any]:
        return self.orders[order_id]

    def add(
        self,
        phone_number: str,
        package_id: Optional[int],
        credits: int,
        amount: int = 99900,
        order_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Register an order as if the widget had created it."""
        notes = {"phone_number": phone_number, "credits": str(credits)}
        if package_id is not None:
            notes["package_id"] = str(package_id)
        overrides: dict[str, Any] = {"amount": amount, "notes": notes}
        if order_id:
            overrides["id"] = order_id
        order = RazorpayOrderFactory.create(overrides)
        self.orders[order["id"]] = order
        return order


async def _create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database file per test."""
    engine = build_engine(tmp_path / "ledger.db")
    await _create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def serialized_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Database whose transactions take the write lock up front."""
    engine = build_engine(tmp_path / "ledger_serialized.db", begin_statement="BEGIN IMMEDIATE")
    await _create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory configured like the application's."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a database session for a test.

    Yields:
        AsyncSession: Database session for testing
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def packages(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, Package]:
    """
    Seed the three pricing tiers, plus a 100-rupee tier for round-trip checks.

    Returns:
        dict: Packages keyed by lower-case name
    """
    rows = [
        Package(**PackageFactory.create({"id": 1, "name": "Free", "price": "0.00", "credits": 3})),
        Package(**PackageFactory.create({"id": 2, "name": "Pro", "price": "9.99", "credits": 50})),
        Package(**PackageFactory.create({"id": 3, "name": "Studio", "price": "29.00", "credits": 200})),
        Package(**PackageFactory.create({"id": 4, "name": "Hundred", "price": "100.00", "credits": 50})),
    ]
    async with session_factory() as session:
        session.add_all(rows)
        await session.commit()

    return {package.name.lower(): package for package in rows}


@pytest.fixture(scope="function")
def razorpay_orders() -> FakeOrderBook:
    """Orders known to the fake gateway."""
    return FakeOrderBook()


@pytest.fixture(scope="function")
def razorpay_client(razorpay_orders: FakeOrderBook) -> MagicMock:
    """MagicMock standing in for ``razorpay.Client``."""
    client = MagicMock()
    client.order.create.side_effect = lambda data: razorpay_orders.create(data)
    client.order.fetch.side_effect = razorpay_orders.fetch
    return client


@pytest.fixture(scope="function")
def razorpay_adapter(razorpay_client: MagicMock) -> RazorpayAdapter:
    """Adapter with test credentials and the mocked SDK client."""
    return RazorpayAdapter(
        key_id=TEST_KEY_ID,
        key_secret=TEST_KEY_SECRET,
        webhook_secret=TEST_WEBHOOK_SECRET,
        client=razorpay_client,
    )


@pytest.fixture(scope="function")
def bot_headers() -> dict[str, str]:
    """Headers authenticating a bot call."""
    return {"x-bot-secret": TEST_BOT_SECRET}


@pytest_asyncio.fixture(scope="function")
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    razorpay_adapter: RazorpayAdapter,
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client with the test database and gateway.

    Yields:
        AsyncClient: Async HTTP client for API testing
    """
    monkeypatch.setattr(settings, "bot_secret", TEST_BOT_SECRET)
    monkeypatch.setattr(settings, "bot_auth_disabled", False)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        """Override database dependency to use test database."""
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_razorpay_adapter() -> RazorpayAdapter:
        return razorpay_adapter

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_razorpay_adapter] = override_get_razorpay_adapter

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
