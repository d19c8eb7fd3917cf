"""Tests for the occupancy claim coordinator."""
from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from gidana.core.errors import (
    AccountNotEligibleError,
    OrphanedClaimError,
    UnitAlreadyClaimedError,
    UnitNotFoundError,
)
from gidana.models import Account, Unit
from gidana.repositories import accounts as accounts_repo
from gidana.repositories import units as units_repo
from gidana.schemas.documents import AccountSnapshot
from gidana.schemas.session import View
from gidana.services import claims as claims_service
from gidana.services import directory as directory_service
from gidana.services.identity import make_identity
from gidana.services.profiles import resolve_profile
from gidana.services.routing import route


def _snapshot(account: Account) -> AccountSnapshot:
    return AccountSnapshot.model_validate(account)


@pytest.mark.asyncio
async def test_claim_vacant_unit_links_account(session, settings, seed) -> None:
    _, units = await seed.property(occupants={"A2": "someone-else"})
    account = await seed.account("tenant-1", display_name="Ada", email="ada@example.com")

    outcome = await claims_service.claim_unit(session, _snapshot(account), units[0].id, settings)

    assert outcome.unit.tenant_id == "tenant-1"
    assert outcome.unit.tenant_name == "Ada"
    assert not outcome.unit.vacant
    assert outcome.account.unit_id == units[0].id
    assert not outcome.already_held

    stored_unit = await seed.fetch(Unit, units[0].id)
    stored_account = await seed.fetch(Account, "tenant-1")
    assert stored_unit.status == "occupied"
    assert stored_unit.tenant_id == "tenant-1"
    assert stored_account.unit_id == units[0].id


@pytest.mark.asyncio
async def test_claim_occupied_unit_is_rejected_without_write(monkeypatch, session, settings, seed) -> None:
    _, units = await seed.property(occupants={"A2": "someone-else"})
    account = await seed.account("tenant-1")
    writes = 0
    original = units_repo.mark_occupied_if_vacant

    async def counting(*args, **kwargs):
        nonlocal writes
        writes += 1
        return await original(*args, **kwargs)

    monkeypatch.setattr(units_repo, "mark_occupied_if_vacant", counting)

    with pytest.raises(UnitAlreadyClaimedError) as excinfo:
        await claims_service.claim_unit(session, _snapshot(account), units[1].id, settings)

    assert excinfo.value.unit_id == units[1].id
    assert writes == 0
    stored_account = await seed.fetch(Account, "tenant-1")
    assert stored_account.unit_id is None


@pytest.mark.asyncio
async def test_concurrent_claims_have_exactly_one_winner(monkeypatch, context, settings, seed) -> None:
    contenders = 5
    _, units = await seed.property(labels=("A1",))
    accounts = [await seed.account(f"tenant-{index}") for index in range(contenders)]
    barrier = asyncio.Barrier(contenders)
    original_get = units_repo.get_by_id
    reads = 0

    async def synchronised_get(session, unit_id):
        nonlocal reads
        reads += 1
        record = await original_get(session, unit_id)
        if reads <= contenders:
            # Everyone sees the unit vacant before anyone writes.
            await barrier.wait()
        return record

    monkeypatch.setattr(units_repo, "get_by_id", synchronised_get)

    async def attempt(account: Account):
        async with context.session_factory() as db_session:
            return await claims_service.claim_unit(db_session, _snapshot(account), units[0].id, settings)

    results = await asyncio.gather(*(attempt(account) for account in accounts), return_exceptions=True)

    winners = [result for result in results if isinstance(result, claims_service.ClaimOutcome)]
    losers = [result for result in results if isinstance(result, UnitAlreadyClaimedError)]
    assert len(winners) == 1
    assert len(losers) == contenders - 1

    winner_id = winners[0].account.id
    stored_unit = await seed.fetch(Unit, units[0].id)
    assert stored_unit.tenant_id == winner_id
    linked = [account.id for account in accounts if (await seed.fetch(Account, account.id)).unit_id == units[0].id]
    assert linked == [winner_id]


@pytest.mark.asyncio
async def test_reclaiming_own_unit_is_idempotent(session, settings, seed) -> None:
    _, units = await seed.property()
    account = await seed.account("tenant-1")

    first = await claims_service.claim_unit(session, _snapshot(account), units[0].id, settings)
    second = await claims_service.claim_unit(session, first.account, units[0].id, settings)

    assert second.already_held
    assert second.unit.tenant_id == "tenant-1"


@pytest.mark.asyncio
async def test_lost_acknowledgement_is_recognised_as_ours(monkeypatch, session, settings, seed) -> None:
    _, units = await seed.property(occupants={"A1": "tenant-1"})
    account = await seed.account("tenant-1")
    original_get = units_repo.get_by_id
    reads = 0

    async def stale_first_read(db_session, unit_id):
        nonlocal reads
        reads += 1
        record = await original_get(db_session, unit_id)
        if reads == 1:
            # Pretend the first read predates our own committed claim.
            db_session.expunge(record)
            record.status = "vacant"
            record.tenant_id = None
        return record

    monkeypatch.setattr(units_repo, "get_by_id", stale_first_read)

    outcome = await claims_service.claim_unit(session, _snapshot(account), units[0].id, settings)

    assert outcome.already_held
    stored_account = await seed.fetch(Account, "tenant-1")
    assert stored_account.unit_id == units[0].id


@pytest.mark.asyncio
async def test_landlord_and_linked_accounts_cannot_claim(session, settings, seed) -> None:
    _, units = await seed.property()
    landlord = await seed.account("landlord-1", role="landlord")
    linked = await seed.account("tenant-2", unit_id=units[1].id)

    with pytest.raises(AccountNotEligibleError):
        await claims_service.claim_unit(session, _snapshot(landlord), units[0].id, settings)
    with pytest.raises(AccountNotEligibleError):
        await claims_service.claim_unit(session, _snapshot(linked), units[0].id, settings)


@pytest.mark.asyncio
async def test_claim_unknown_unit(session, settings, seed) -> None:
    account = await seed.account("tenant-1")

    with pytest.raises(UnitNotFoundError):
        await claims_service.claim_unit(session, _snapshot(account), "missing-unit", settings)


@pytest.mark.asyncio
async def test_failed_linkage_leaves_orphan_that_resolution_repairs(monkeypatch, session, settings, seed) -> None:
    _, units = await seed.property()
    identity = make_identity("ada@example.com", provider="google", display_name="Ada")
    account = await seed.account(identity.account_id, email=identity.email)

    async def dropped_link(*args, **kwargs):
        raise OperationalError("UPDATE accounts", {}, Exception("connection dropped"))

    monkeypatch.setattr(accounts_repo, "link_unit", dropped_link)

    with pytest.raises(OrphanedClaimError) as excinfo:
        await claims_service.claim_unit(session, _snapshot(account), units[0].id, settings)

    assert excinfo.value.status_code == 202
    stored_unit = await seed.fetch(Unit, units[0].id)
    stored_account = await seed.fetch(Account, identity.account_id)
    assert stored_unit.tenant_id == identity.account_id
    assert stored_account.unit_id is None

    monkeypatch.undo()
    resolution = await resolve_profile(session, identity, settings)

    assert resolution.repaired
    assert resolution.account.unit_id == units[0].id
    assert route(authenticated=True, loading=False, role=resolution.role, linked=resolution.linked) is View.TENANT_DASHBOARD
    stored_account = await seed.fetch(Account, identity.account_id)
    assert stored_account.unit_id == units[0].id


@pytest.mark.asyncio
async def test_vacate_returns_unit_and_clears_linkage(session, settings, seed) -> None:
    _, units = await seed.property(landlord_id="landlord-1", occupants={"A2": "tenant-2"})
    landlord = await seed.account("landlord-1", role="landlord")
    await seed.account("tenant-2", unit_id=units[1].id)

    outcome = await claims_service.vacate_unit(session, _snapshot(landlord), units[1].id, settings)

    assert outcome.unit.vacant
    assert outcome.released_account_ids == ["tenant-2"]
    stored_unit = await seed.fetch(Unit, units[1].id)
    stored_account = await seed.fetch(Account, "tenant-2")
    assert stored_unit.status == "vacant"
    assert stored_unit.tenant_id is None
    assert stored_account.unit_id is None


@pytest.mark.asyncio
async def test_vacate_requires_owning_landlord(session, settings, seed) -> None:
    _, units = await seed.property(landlord_id="landlord-1", occupants={"A2": "tenant-2"})
    other = await seed.account("landlord-2", role="landlord")
    tenant = await seed.account("tenant-3")

    with pytest.raises(AccountNotEligibleError):
        await claims_service.vacate_unit(session, _snapshot(other), units[1].id, settings)
    with pytest.raises(AccountNotEligibleError):
        await claims_service.vacate_unit(session, _snapshot(tenant), units[1].id, settings)


@pytest.mark.asyncio
@pytest.mark.parametrize("stored_status", ["Vacant", " VACANT "])
async def test_vacant_status_in_any_casing_can_be_claimed(session, settings, seed, stored_status) -> None:
    _, units = await seed.property(code="GIDA-0101")
    await seed.set_status(units[0].id, stored_status)
    account = await seed.account("tenant-1")

    offered = (await directory_service.lookup_property(session, "GIDA-0101", settings)).vacant_units()
    outcome = await claims_service.claim_unit(session, _snapshot(account), units[0].id, settings)

    assert [unit.label for unit in offered] == ["A1", "A2"]
    assert outcome.unit.tenant_id == "tenant-1"
    stored_unit = await seed.fetch(Unit, units[0].id)
    assert stored_unit.status == "occupied"
    assert stored_unit.tenant_id == "tenant-1"
