"""In-process identity provider with an explicit auth-change channel."""
from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from uuid import NAMESPACE_URL, uuid5

from .token_store import TokenStore

logger = logging.getLogger(__name__)

PASSWORD_PROVIDER = "password"

_CLOSED = object()


@dataclass(slots=True, frozen=True)
class Identity:
    """Authenticated identity issued by the provider."""

    account_id: str
    email: str
    display_name: str | None = None
    provider: str = PASSWORD_PROVIDER

    @property
    def allows_implicit_signup(self) -> bool:
        """Federated sign-ins may create their account on first use."""

        return self.provider != PASSWORD_PROVIDER


def make_identity(email: str, *, provider: str = PASSWORD_PROVIDER, display_name: str | None = None) -> Identity:
    """Build the identity for an email; the same email and provider always map to one account."""

    normalised = email.strip().lower()
    account_id = str(uuid5(NAMESPACE_URL, f"gidana:{provider}:{normalised}"))
    return Identity(account_id=account_id, email=normalised, display_name=display_name, provider=provider)


class AuthSubscription:
    """Async iterator over auth-state changes.

    The state current at subscription time is delivered first. Iteration
    ends once :meth:`unsubscribe` is called.
    """

    def __init__(self, provider: "IdentityProvider") -> None:
        self._provider = provider
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> "AuthSubscription":
        return self

    async def __anext__(self) -> Optional[Identity]:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    async def next_event(self, timeout: float | None = None) -> Optional[Identity]:
        """Return the next event, waiting at most ``timeout`` seconds."""

        return await asyncio.wait_for(self.__anext__(), timeout)

    def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._provider._detach(self)
        self._queue.put_nowait(_CLOSED)

    def _deliver(self, identity: Optional[Identity]) -> None:
        if not self._closed:
            self._queue.put_nowait(identity)


class IdentityProvider:
    """Issue opaque session tokens and notify subscribers of sign-in/out.

    ``current`` tracks the identity of the embedding client process; the
    token registry serves any number of HTTP callers.
    """

    def __init__(self, token_ttl_seconds: int = 3600) -> None:
        self._tokens: TokenStore[Identity] = TokenStore(ttl_seconds=token_ttl_seconds)
        self._subscribers: list[AuthSubscription] = []
        self._current: Optional[Identity] = None

    @property
    def current(self) -> Optional[Identity]:
        return self._current

    def subscribe(self) -> AuthSubscription:
        subscription = AuthSubscription(self)
        self._subscribers.append(subscription)
        subscription._deliver(self._current)
        return subscription

    def sign_in(self, identity: Identity) -> str:
        """Register ``identity`` and return a bearer token for it."""

        token = secrets.token_urlsafe(32)
        self._tokens.save(token, identity)
        self._current = identity
        logger.info("Signed in account %s via %s", identity.account_id, identity.provider)
        self._publish(identity)
        return token

    def sign_out(self, token: str | None = None) -> None:
        """Revoke ``token`` (or the current identity) and notify subscribers."""

        identity = self._tokens.pop(token) if token else self._current
        if identity is None:
            return
        if self._current is not None and self._current.account_id == identity.account_id:
            self._current = None
            self._publish(None)
        logger.info("Signed out account %s", identity.account_id)

    def authenticate(self, token: str) -> Optional[Identity]:
        return self._tokens.get(token)

    async def close(self) -> None:
        for subscription in list(self._subscribers):
            subscription.unsubscribe()
        self._tokens.clear()
        self._current = None

    def _publish(self, identity: Optional[Identity]) -> None:
        for subscription in list(self._subscribers):
            subscription._deliver(identity)

    def _detach(self, subscription: AuthSubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
