"""Shared fixtures: a throwaway SQLite file per test and an app wired to it."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from smartbin.database import get_db, init_models
from smartbin.main import create_app
from smartbin.mqtt import ConnectionManager, TelemetryHandlers


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def connection():
    """A broker session that is never initialized, so it stays disconnected."""
    return ConnectionManager("mqtt://localhost:1883", topics=["bins/+/level"])


@pytest.fixture
def app(session_factory, connection):
    app = create_app(
        connection=connection,
        handlers=TelemetryHandlers(session_factory),
        mqtt_enabled=False,
    )

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
async def client(app):
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
async def registered_device(session_factory):
    """A device in area 'Cafeteria' with correlation id 'esp-001' and both bins."""
    from smartbin.services import create_area, create_device, update_device

    async with session_factory() as session:
        area = await create_area(session, "Cafeteria")
        device, bins = await create_device(session, "Entrance bin", area.area_id)
        await update_device(session, device.id, correlation_id="esp-001")
    return device.id
