"""Durable store contract and its SQLAlchemy implementation.

The store is the source of truth for every mapping. Lookups distinguish
"no matching row" (``None``) from an I/O failure (``StoreError``), and the
unique index on ``code`` makes ``add`` the final arbiter of code uniqueness.

How to Use
===========
::
    storage = SQLStorage(get_sessionmaker())
    record = await storage.add(URLRecord(code="abcd1234", ...))
    url = await storage.get_url_by_code("abcd1234")   # str | None
    await storage.increment_counter("abcd1234")

Classes:
    Storage:  Abstract async contract consumed by the repository.
    SQLStorage:  PostgreSQL-backed implementation, one short session per call.
"""

import logging
from abc import ABC, abstractmethod

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortener.errors import DuplicateCodeError, StoreError
from shortener.models import URL
from shortener.schemas import URLRecord

__all__ = ["Storage", "SQLStorage"]

logger = logging.getLogger(__name__)


class Storage(ABC):
    """Abstract async durable store."""

    @abstractmethod
    async def add(self, record: URLRecord) -> URLRecord:  # pragma: no cover
        """Insert ``record`` and return it with the store-assigned id.

        Raises:
            DuplicateCodeError: If the code violates the uniqueness constraint.
            StoreError: On any other failure.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, record_id: int) -> None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    async def get_url_by_code(self, code: str) -> str | None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, record_id: int) -> URLRecord | None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    async def get_by_url(self, url: str) -> URLRecord | None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    async def increment_counter(self, code: str) -> None:  # pragma: no cover
        """Atomically add one to the counter of ``code``."""
        raise NotImplementedError


class SQLStorage(Storage):
    """SQLAlchemy async implementation of the store contract.

    Args:
        session_factory: Async session factory; each call opens and closes
            its own session so concurrent counter workers never share one.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def add(self, record: URLRecord) -> URLRecord:
        row = URL(
            code=record.code,
            original_url=record.original_url,
            short_url=record.short_url,
            domain=record.domain,
            counter=record.counter,
        )
        async with self._session_factory() as session:
            try:
                session.add(row)
                await session.commit()
                await session.refresh(row)
            except IntegrityError as exc:
                await session.rollback()
                logger.warning(f"Unique constraint rejected code: {record.code}")
                raise DuplicateCodeError(record.code) from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StoreError(f"unable to add url: {exc}") from exc
        return record.model_copy(update={"id": row.id})

    async def delete(self, record_id: int) -> None:
        async with self._session_factory() as session:
            try:
                await session.execute(delete(URL).where(URL.id == record_id))
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StoreError(f"unable to delete url {record_id}: {exc}") from exc

    async def get_url_by_code(self, code: str) -> str | None:
        async with self._session_factory() as session:
            try:
                result = await session.execute(select(URL.original_url).where(URL.code == code))
            except SQLAlchemyError as exc:
                raise StoreError(f"unable to fetch url for code {code}: {exc}") from exc
            return result.scalar_one_or_none()

    async def get_by_id(self, record_id: int) -> URLRecord | None:
        async with self._session_factory() as session:
            try:
                result = await session.execute(select(URL).where(URL.id == record_id))
            except SQLAlchemyError as exc:
                raise StoreError(f"unable to fetch url {record_id}: {exc}") from exc
            row = result.scalar_one_or_none()
        return URLRecord.model_validate(row) if row is not None else None

    async def get_by_url(self, url: str) -> URLRecord | None:
        async with self._session_factory() as session:
            try:
                result = await session.execute(select(URL).where(URL.original_url == url).limit(1))
            except SQLAlchemyError as exc:
                raise StoreError(f"unable to fetch url by original url: {exc}") from exc
            row = result.scalar_one_or_none()
        return URLRecord.model_validate(row) if row is not None else None

    async def increment_counter(self, code: str) -> None:
        async with self._session_factory() as session:
            try:
                await session.execute(update(URL).where(URL.code == code).values(counter=URL.counter + 1))
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StoreError(f"unable to increment counter for code {code}: {exc}") from exc
