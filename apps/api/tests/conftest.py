"""Shared fixtures: a file-backed SQLite store and seeding helpers."""
from __future__ import annotations

from typing import AsyncIterator, Iterable
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from gidana.core.config import Settings
from gidana.core.context import AppContext
from gidana.models import Account, Property, Unit
from gidana.models.base import utcnow
from gidana.services import credentials


GOOGLE_CLIENT_ID = "gidana-test.apps.googleusercontent.com"


class Seeder:
    """Insert rows directly, bypassing the services under test."""

    def __init__(self, context: AppContext) -> None:
        self._context = context

    async def account(
        self,
        account_id: str | None = None,
        *,
        role: str | None = "tenant",
        unit_id: str | None = None,
        email: str | None = None,
        display_name: str | None = None,
    ) -> Account:
        account = Account(
            id=account_id or f"acct-{uuid4().hex[:8]}",
            email=email,
            display_name=display_name,
            role=role,
            unit_id=unit_id,
        )
        async with self._context.session_factory() as session:
            async with session.begin():
                session.add(account)
        return account

    async def property(
        self,
        *,
        code: str = "GIDA-1234",
        landlord_id: str = "landlord-1",
        labels: Iterable[str] = ("A1", "A2"),
        occupants: dict[str, str] | None = None,
        rent: int = 150_000,
    ) -> tuple[Property, list[Unit]]:
        """Create a property; ``occupants`` maps unit label to tenant id."""

        occupants = occupants or {}
        prop = Property(
            id=f"prop-{uuid4().hex[:8]}",
            code=code,
            landlord_id=landlord_id,
            name="Sunset Court",
            address="12 Marina Road",
            city="Lagos",
        )
        units = []
        for label in labels:
            tenant_id = occupants.get(label)
            units.append(
                Unit(
                    id=f"unit-{uuid4().hex[:8]}",
                    property_id=prop.id,
                    label=label,
                    rent=rent,
                    status="occupied" if tenant_id else "vacant",
                    tenant_id=tenant_id,
                    tenant_name="Existing Tenant" if tenant_id else None,
                    claimed_at=utcnow() if tenant_id else None,
                )
            )
        async with self._context.session_factory() as session:
            async with session.begin():
                session.add(prop)
                await session.flush()
                session.add_all(units)
        return prop, units

    async def set_status(self, unit_id: str, status: str) -> None:
        """Store a raw status string, as legacy records may carry."""

        async with self._context.session_factory() as session:
            async with session.begin():
                unit = await session.get(Unit, unit_id)
                unit.status = status

    async def fetch(self, model: type, key: str):
        async with self._context.session_factory() as session:
            return await session.get(model, key)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'gidana.db'}",
        database_auto_create=True,
        cors_allow_origins=[],
        store_timeout_seconds=5.0,
        store_max_attempts=5,
        store_retry_backoff_seconds=0.01,
        resolve_timeout_seconds=10.0,
        password_hash_rounds=4,
        google_client_id=GOOGLE_CLIENT_ID,
    )


@pytest_asyncio.fixture
async def context(settings: Settings) -> AsyncIterator[AppContext]:
    ctx = AppContext(settings)
    await ctx.init()
    yield ctx
    await ctx.dispose()


@pytest_asyncio.fixture
async def session(context: AppContext) -> AsyncIterator[AsyncSession]:
    async with context.session_factory() as db_session:
        yield db_session


@pytest.fixture
def seed(context: AppContext) -> Seeder:
    return Seeder(context)


@pytest_asyncio.fixture
async def client(context: AppContext) -> AsyncIterator[AsyncClient]:
    from gidana.main import app

    app.state.context = context
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
    app.state.context = None


@pytest.fixture
def google_tokens(monkeypatch) -> dict[str, dict]:
    """Map of accepted Google ID tokens to their claims; anything else is rejected."""

    tokens: dict[str, dict] = {}

    def fake_verify(token: str, client_id: str) -> dict:
        assert client_id == GOOGLE_CLIENT_ID
        if token not in tokens:
            raise ValueError("Could not verify token signature.")
        return tokens[token]

    monkeypatch.setattr(credentials, "_verify_google_token", fake_verify)
    return tokens
