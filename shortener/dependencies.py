"""Dependency injection with a singleton service manager.

The manager builds the long-lived object graph once at startup (store,
cache, repository, counter pipeline, service) and hands it to routes through
FastAPI dependencies, so no request pays for wiring.

Object Graph
============
::
    ServiceManager
    ├─ storage     SQLStorage(get_sessionmaker())
    ├─ cache       RedisCache(get_redis())
    ├─ repository  URLRepository(storage, cache)
    ├─ pipeline    CounterPipeline(repository, COUNTER_WORKERS, COUNTER_QUEUE_SIZE)
    └─ service     ShorteningService(repository, pipeline, DOMAIN)
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from fastapi import Depends

from shortener.cache import RedisCache
from shortener.config import get_settings
from shortener.counter import CounterPipeline
from shortener.database import get_sessionmaker
from shortener.redis import get_redis
from shortener.repository import URLRepository
from shortener.service import ShorteningService
from shortener.storage import SQLStorage

__all__ = ["ServiceManager", "get_service_manager", "get_url_service"]


# ============================================================================
# SINGLETON SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Singleton service manager for shared resources."""

    _instance: Optional["ServiceManager"] = None
    _initialized: bool = False

    def __new__(cls) -> "ServiceManager":
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def initialize(self) -> None:
        """Build shared resources and start the counter workers once."""
        if self._initialized:
            return
        self.settings = get_settings()
        self.logger = self._setup_logger()
        self.session_factory = get_sessionmaker()
        self.cache = RedisCache(await get_redis())
        self.storage = SQLStorage(self.session_factory)
        self.repository = URLRepository(self.storage, self.cache)
        self.pipeline = CounterPipeline(
            self.repository,
            workers=self.settings.COUNTER_WORKERS,
            capacity=self.settings.COUNTER_QUEUE_SIZE,
        )
        self.service = ShorteningService(
            self.repository,
            self.pipeline,
            domain=self.settings.DOMAIN,
            max_attempts=self.settings.CODE_MAX_ATTEMPTS,
        )
        await self.pipeline.start()
        self._initialized = True
        self.logger.info(f"{self.settings.APP_NAME} initialized for domain {self.settings.DOMAIN}")

    def _setup_logger(self) -> logging.Logger:
        """Configure the application logger once; module loggers propagate to it."""
        logger = logging.getLogger("shortener")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(self.settings.LOG_LEVEL)
        return logger

    async def check_database(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError):
            self.logger.error("Database health check failed", exc_info=True)
            return False
        return True

    async def check_cache(self) -> bool:
        return await self.cache.ping()

    async def cleanup(self) -> None:
        """Drain pending counter increments, then release shared resources."""
        if not self._initialized:
            return
        await self.pipeline.close()
        self._initialized = False


# Global singleton instance
_service_manager = ServiceManager()


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager._initialized:
        await _service_manager.initialize()
    return _service_manager


def get_url_service(manager: ServiceManager = Depends(get_service_manager)) -> ShorteningService:
    return manager.service
