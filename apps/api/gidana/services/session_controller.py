"""Process-local session driven by the identity channel.

The controller consumes auth-change events, re-runs the profile resolver on
every change and after every action that can alter the tenant linkage, and
derives the current view from the session router.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from ..core.errors import GidanaError
from ..models.account import Role
from ..schemas.documents import AccountSnapshot
from ..schemas.session import NavigationIntent, View
from . import claims as claims_service
from . import directory as directory_service
from .identity import AuthSubscription, Identity
from .profiles import resolve_profile
from .routing import route

if TYPE_CHECKING:
    from ..core.context import AppContext

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    authenticated: bool = False
    loading: bool = False
    failed: bool = False
    identity: Identity | None = None
    account: AccountSnapshot | None = None
    intent: NavigationIntent = NavigationIntent.LANDING

    @property
    def role(self) -> Role | None:
        return self.account.role if self.account else None

    @property
    def linked(self) -> bool:
        return bool(self.account and self.account.linked)

    @property
    def needs_linking(self) -> bool:
        return self.authenticated and not self.loading and self.role is Role.TENANT and not self.linked

    @property
    def view(self) -> View:
        return route(
            authenticated=self.authenticated,
            loading=self.loading,
            role=self.role,
            linked=self.linked,
            intent=self.intent,
            failed=self.failed,
        )


class SessionController:
    """Own one client's session state for the lifetime of the process."""

    def __init__(self, context: "AppContext") -> None:
        self._context = context
        self.state = SessionState()
        self._generation = 0
        self._subscription: AuthSubscription | None = None
        self._task: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def view(self) -> View:
        return self.state.view

    async def start(self) -> None:
        if self._task is not None:
            return
        self._subscription = self._context.identity.subscribe()
        self._task = asyncio.create_task(self._consume(self._subscription))

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
        if self._task is not None:
            await self._task
        self._subscription = None
        self._task = None

    async def wait_idle(self) -> View:
        """Wait until queued auth events have been handled."""

        while True:
            await asyncio.sleep(0)
            await self._idle.wait()
            if self._subscription is None or self._subscription.pending == 0:
                return self.state.view

    def navigate(self, intent: NavigationIntent) -> View:
        self.state.intent = intent
        return self.state.view

    async def handle_auth_change(self, identity: Identity | None) -> View:
        self._generation += 1
        if identity is None:
            self.state = SessionState(intent=NavigationIntent.LANDING)
            return self.state.view

        self.state = SessionState(authenticated=True, identity=identity, intent=self.state.intent)
        return await self.refresh()

    async def refresh(self) -> View:
        """Re-run profile resolution for the signed-in identity."""

        identity = self.state.identity
        if not self.state.authenticated or identity is None:
            return self.state.view

        generation = self._generation
        self.state.loading = True
        self.state.failed = False
        settings = self._context.settings
        try:
            async with self._context.session_factory() as session:
                resolution = await asyncio.wait_for(
                    resolve_profile(session, identity, settings),
                    timeout=settings.resolve_timeout_seconds,
                )
        except (GidanaError, asyncio.TimeoutError) as exc:
            if generation == self._generation:
                logger.warning("Profile resolution for %s failed: %s", identity.account_id, exc)
                self.state.account = None
                self.state.failed = True
                self.state.loading = False
            return self.state.view

        if generation != self._generation:
            # Signed out or switched identity while resolving.
            return self.state.view

        self.state.account = resolution.account
        self.state.loading = False
        return self.state.view

    async def find_property(self, code: str) -> directory_service.DirectoryResult:
        async with self._context.session_factory() as session:
            return await directory_service.lookup_property(session, code, self._context.settings)

    async def claim(self, unit_id: str) -> View:
        """Claim a unit for the signed-in account and re-resolve the session."""

        account = self.state.account
        if account is None:
            return self.state.view
        async with self._context.session_factory() as session:
            await claims_service.claim_unit(session, account, unit_id, self._context.settings)
        return await self.refresh()

    async def sign_out(self) -> View:
        self._generation += 1
        self.state = SessionState(intent=NavigationIntent.LANDING)
        self._context.identity.sign_out()
        return self.state.view

    async def _consume(self, subscription: AuthSubscription) -> None:
        async for identity in subscription:
            self._idle.clear()
            try:
                await self.handle_auth_change(identity)
            except Exception:  # noqa: BLE001 - keep consuming auth events
                logger.exception("Unexpected failure handling auth change")
                self.state.loading = False
                self.state.failed = True
            finally:
                self._idle.set()
