"""Shared fixtures: in-memory database, app client and script factories."""

from __future__ import annotations

import itertools
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from script_registry.core.config import Settings, get_settings
from script_registry.db.models import Script as ScriptModel, ScriptVersion as ScriptVersionModel
from script_registry.infrastructure.database.session import init_db
from script_registry.interfaces.http.deps import get_db_session
from script_registry.main import create_app


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test", preview={"timeout_seconds": 10})


@pytest_asyncio.fixture
async def client(session_factory, settings) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(manage_database=False)

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_settings] = lambda: settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@dataclass
class ScriptFactory:
    """Inserts scripts and versions straight into the database."""

    session_factory: async_sessionmaker[AsyncSession]
    _sequence: itertools.count = field(default_factory=lambda: itertools.count(1))

    def _defaults(self) -> dict:
        n = next(self._sequence)
        return {
            "title": f"Script {n} {uuid.uuid4().hex[:8]}",
            "language": "php",
            "code": f"<?php return ['n' => {n}];",
            "description": f"Description {n}",
            "key": None,
        }

    async def create(self, *, created_at: Optional[datetime] = None, **fields) -> ScriptModel:
        async with self.session_factory() as session:
            script = ScriptModel()
            session.add(script)
            await session.flush()
            version = ScriptVersionModel(script_id=script.id, **{**self._defaults(), **fields})
            if created_at is not None:
                version.created_at = created_at
            session.add(version)
            await session.flush()
            script.current_version_id = version.id
            await session.commit()
            await session.refresh(script)
            return script

    async def add_version(
        self,
        script_id: int,
        *,
        created_at: Optional[datetime] = None,
        **fields,
    ) -> ScriptVersionModel:
        async with self.session_factory() as session:
            version = ScriptVersionModel(script_id=script_id, **{**self._defaults(), **fields})
            if created_at is not None:
                version.created_at = created_at
            session.add(version)
            await session.flush()

            latest_id = (
                await session.execute(
                    select(ScriptVersionModel.id)
                    .where(ScriptVersionModel.script_id == script_id)
                    .order_by(ScriptVersionModel.created_at.desc(), ScriptVersionModel.id.desc())
                    .limit(1)
                )
            ).scalar_one()
            script = await session.get(ScriptModel, script_id)
            script.current_version_id = latest_id
            await session.commit()
            await session.refresh(version)
            return version


@pytest.fixture
def script_factory(session_factory) -> ScriptFactory:
    return ScriptFactory(session_factory)
