"""Process-wide collaborators, constructed explicitly and passed around."""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from ..db.session import SessionFactory, build_engine, build_session_factory, create_schema
from ..services.identity import IdentityProvider
from .config import Settings

logger = logging.getLogger(__name__)


class AppContext:
    """Own the store engine, the session factory and the identity provider.

    Call :meth:`init` on process start and :meth:`dispose` on shutdown.
    """

    def __init__(self, settings: Settings, *, identity: IdentityProvider | None = None) -> None:
        self.settings = settings
        self.identity = identity or IdentityProvider(token_ttl_seconds=settings.identity_token_ttl_seconds)
        self._engine: AsyncEngine | None = None
        self._session_factory: SessionFactory | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("AppContext.init() has not been called")
        return self._engine

    @property
    def session_factory(self) -> SessionFactory:
        if self._session_factory is None:
            raise RuntimeError("AppContext.init() has not been called")
        return self._session_factory

    @property
    def initialised(self) -> bool:
        return self._engine is not None

    async def init(self) -> None:
        if self._engine is not None:
            return
        self._engine = build_engine(self.settings)
        self._session_factory = build_session_factory(self._engine)
        if self.settings.database_auto_create:
            await create_schema(self._engine)
        logger.info("Application context initialised (env=%s)", self.settings.app_env)

    async def dispose(self) -> None:
        await self.identity.close()
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Application context disposed")
