"""Guard for store calls: bounded time, bounded retries, one error kind."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError

from ..core.config import Settings
from ..core.errors import StoreUnavailableError

T = TypeVar("T")

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    asyncio.TimeoutError,
    TimeoutError,
    OperationalError,
    InterfaceError,
    DisconnectionError,
    OSError,
)


async def guarded(
    operation: Callable[[], Awaitable[T]],
    settings: Settings,
    *,
    description: str,
    attempts: int | None = None,
) -> T:
    """Run ``operation`` under the store timeout, retrying transient failures.

    ``operation`` must be safe to repeat: each attempt opens its own
    transaction, and an attempt that timed out has been rolled back.
    """

    max_attempts = attempts or settings.store_max_attempts
    last_error: BaseException | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await asyncio.wait_for(operation(), timeout=settings.store_timeout_seconds)
        except TRANSIENT_ERRORS as exc:
            last_error = exc
            logger.warning(
                "Store call %s failed (attempt %d/%d): %s", description, attempt, max_attempts, exc
            )
            if attempt < max_attempts and settings.store_retry_backoff_seconds:
                await asyncio.sleep(settings.store_retry_backoff_seconds * attempt)

    raise StoreUnavailableError(f"Store unavailable while trying to {description}.") from last_error
