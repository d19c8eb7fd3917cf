"""Tests for the identity provider, its auth channel and the token registry."""
from __future__ import annotations

import asyncio

import pytest

from gidana.services import token_store as token_store_module
from gidana.services.identity import IdentityProvider, make_identity
from gidana.services.token_store import TokenStore


def test_make_identity_is_stable_per_email_and_provider() -> None:
    first = make_identity(" Ada@Example.com ")
    second = make_identity("ada@example.com")
    federated = make_identity("ada@example.com", provider="google")

    assert first.account_id == second.account_id
    assert first.email == "ada@example.com"
    assert federated.account_id != first.account_id
    assert not first.allows_implicit_signup
    assert federated.allows_implicit_signup


@pytest.mark.asyncio
async def test_subscription_delivers_current_state_then_changes() -> None:
    provider = IdentityProvider()
    subscription = provider.subscribe()
    identity = make_identity("ada@example.com", provider="google")

    assert await subscription.next_event(timeout=1) is None

    provider.sign_in(identity)
    assert await subscription.next_event(timeout=1) == identity

    provider.sign_out()
    assert await subscription.next_event(timeout=1) is None
    assert provider.current is None


@pytest.mark.asyncio
async def test_unsubscribe_ends_iteration_and_stops_delivery() -> None:
    provider = IdentityProvider()
    subscription = provider.subscribe()
    received = []

    async def consume() -> None:
        async for event in subscription:
            received.append(event)

    task = asyncio.create_task(consume())
    await asyncio.sleep(0)
    subscription.unsubscribe()
    await asyncio.wait_for(task, timeout=1)
    provider.sign_in(make_identity("late@example.com"))

    assert received == [None]
    assert subscription.closed


@pytest.mark.asyncio
async def test_tokens_authenticate_until_signed_out() -> None:
    provider = IdentityProvider()
    identity = make_identity("ada@example.com")

    token = provider.sign_in(identity)
    assert provider.authenticate(token) == identity
    assert provider.authenticate("not-a-token") is None

    provider.sign_out(token)
    assert provider.authenticate(token) is None

    await provider.close()


def test_token_store_evicts_idle_entries(monkeypatch) -> None:
    now = 1_000.0
    monkeypatch.setattr(token_store_module.time, "time", lambda: now)
    store: TokenStore[str] = TokenStore(ttl_seconds=10)

    store.save("abc", "value")
    now += 5
    assert store.get("abc") == "value"
    now += 9
    assert store.get("abc") == "value"
    now += 11
    assert store.get("abc") is None
    assert len(store) == 0
