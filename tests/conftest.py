import os

# Test environment, set before the settings object is created
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"

from datetime import date, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlmodel import SQLModel

from clinic_scheduler.core.db import build_engine, build_session_maker, get_session
from clinic_scheduler.main import app


# ---------------------------------------------------------
# DB Setup Fixtures (fresh in-memory database per test)
# ---------------------------------------------------------
@pytest.fixture
async def engine():
    engine = build_engine("sqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    async def _get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
@pytest.fixture
def tomorrow() -> date:
    return date.today() + timedelta(days=1)


@pytest.fixture
def make_doctor(client):
    async def _make_doctor(**fields) -> dict:
        payload = {"name": "Dr. Test", "specialization": "General"}
        payload.update(fields)
        response = await client.post("/api/v1/doctors", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_doctor
