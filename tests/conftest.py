import os

# Settings are read at import time; point them at SQLite before anything loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date
from typing import AsyncGenerator, Dict, List, Optional, Tuple

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fleet_timeline.api.routes import timeline
from fleet_timeline.domain.services.timeline_engine import FleetTimelineEngine
from fleet_timeline.infrastructure.db.database import Base, get_db
from fleet_timeline.infrastructure.db import models  # noqa: F401
from fleet_timeline.infrastructure.db.repositories.rental_repository import RentalRepository
from fleet_timeline.infrastructure.db.repositories.vehicle_repository import (
    VehicleClassRepository,
    VehicleRepository,
)
from fleet_timeline.main import create_app


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis honouring `ex` expiry"""

    def __init__(self):
        self.now = 0.0
        self.store: Dict[str, Tuple[str, Optional[float]]] = {}
        self.set_calls: List[Tuple[str, Optional[int]]] = []
        self.closed = False

    def _alive(self, key: str) -> bool:
        _, expires_at = self.store[key]
        return expires_at is None or expires_at > self.now

    async def get(self, key: str) -> Optional[str]:
        if key not in self.store or not self._alive(key):
            return None
        return self.store[key][0]

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        self.set_calls.append((key, ex))
        self.store[key] = (value, None if ex is None else self.now + ex)

    async def dbsize(self) -> int:
        return sum(1 for key in self.store if self._alive(key))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture()
def today() -> date:
    return date(2026, 3, 31)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
async def db_engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        future=True,
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture()
async def app(db_session, today) -> FastAPI:
    app = create_app()

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    def override_engine():
        return FleetTimelineEngine(
            vehicle_class_repo=VehicleClassRepository(db_session),
            vehicle_repo=VehicleRepository(db_session),
            rental_repo=RentalRepository(db_session),
            today=lambda: today,
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[timeline.get_timeline_engine] = override_engine

    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
