"""Account repository helpers."""
from __future__ import annotations

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.account import Account, Role


async def get_by_id(session: AsyncSession, account_id: str) -> Account | None:
    """Return an account by identifier."""

    return await session.get(Account, account_id, populate_existing=True)


async def create_account(
    session: AsyncSession,
    *,
    account_id: str,
    email: str | None,
    display_name: str | None,
    role: Role,
    password_hash: str | None = None,
) -> Account:
    """Insert a new account; raises ``IntegrityError`` if the id exists."""

    account = Account(
        id=account_id,
        email=email,
        display_name=display_name,
        role=role.value,
        password_hash=password_hash,
        unit_id=None,
    )
    session.add(account)
    await session.flush()
    return account


async def link_unit(session: AsyncSession, *, account_id: str, unit_id: str) -> bool:
    """Record the unit linkage on the account and confirm the tenant role."""

    stmt = (
        update(Account)
        .where(Account.id == account_id)
        .values(unit_id=unit_id, role=Role.TENANT.value)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def clear_unit(session: AsyncSession, *, account_id: str, unit_id: str) -> bool:
    """Drop the linkage only if the account still points at ``unit_id``."""

    stmt = (
        update(Account)
        .where(Account.id == account_id, Account.unit_id == unit_id)
        .values(unit_id=None)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def list_linked_to_unit(session: AsyncSession, unit_id: str) -> list[Account]:
    """Return every account whose linkage references the unit."""

    stmt: Select[tuple[Account]] = select(Account).where(Account.unit_id == unit_id).order_by(Account.id.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())
