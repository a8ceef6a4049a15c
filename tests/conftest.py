"""Shared pytest fixtures: in-memory repository wiring plus an HTTP client."""

import random
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fakes import DOMAIN, InMemoryCache, InMemoryStorage
from shortener.codegen import CodeGenerator
from shortener.counter import CounterPipeline
from shortener.dependencies import ServiceManager, get_service_manager, get_url_service
from shortener.main import app
from shortener.repository import URLRepository
from shortener.service import ShorteningService


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def repository(storage: InMemoryStorage, cache: InMemoryCache) -> URLRepository:
    return URLRepository(storage, cache)


@pytest.fixture
def generator() -> CodeGenerator:
    return CodeGenerator(rng=random.Random(1234))


@pytest_asyncio.fixture
async def pipeline(repository: URLRepository) -> AsyncGenerator[CounterPipeline, None]:
    counter_pipeline = CounterPipeline(repository, workers=2)
    await counter_pipeline.start()
    yield counter_pipeline
    await counter_pipeline.close(timeout=5)


@pytest_asyncio.fixture
async def service(
    repository: URLRepository,
    pipeline: CounterPipeline,
    generator: CodeGenerator,
) -> ShorteningService:
    return ShorteningService(repository, pipeline, domain=DOMAIN, generator=generator)


@pytest.fixture
def manager() -> MagicMock:
    """Stand-in for the service manager used by the health endpoint."""
    stub = MagicMock(spec=ServiceManager)
    stub.check_database = AsyncMock(return_value=True)
    stub.check_cache = AsyncMock(return_value=True)
    return stub


@pytest_asyncio.fixture
async def client(service: ShorteningService, manager: MagicMock) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not run the lifespan, so no database or Redis is touched
    app.dependency_overrides[get_url_service] = lambda: service
    app.dependency_overrides[get_service_manager] = lambda: manager
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
