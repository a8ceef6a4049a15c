"""Tests for the background counter-increment pipeline."""

import asyncio
import logging

import pytest

from fakes import DOMAIN, InMemoryCache, InMemoryStorage
from shortener.counter import CounterPipeline
from shortener.repository import URLRepository
from shortener.schemas import URLRecord


async def _seed(storage: InMemoryStorage, *codes: str) -> None:
    for index, code in enumerate(codes):
        await storage.add(
            URLRecord(
                code=code,
                original_url=f"http://example.com/{index}",
                short_url=f"{DOMAIN}/{code}",
                domain=DOMAIN,
            )
        )


def _counter(storage: InMemoryStorage, code: str) -> int:
    return next(row.counter for row in storage.rows.values() if row.code == code)


class SlowStorage(InMemoryStorage):
    async def increment_counter(self, code: str) -> None:
        await asyncio.sleep(0.01)
        await super().increment_counter(code)


@pytest.mark.parametrize(("workers", "capacity"), [(-1, 10), (1, 0)])
def test_invalid_configuration_is_rejected(repository: URLRepository, workers: int, capacity: int) -> None:
    with pytest.raises(ValueError):
        CounterPipeline(repository, workers=workers, capacity=capacity)


@pytest.mark.asyncio
async def test_start_is_idempotent(repository: URLRepository) -> None:
    pipeline = CounterPipeline(repository, workers=3)
    await pipeline.start()
    await pipeline.start()

    assert pipeline.running
    assert len(pipeline._tasks) == 3

    await pipeline.close()
    assert not pipeline.running
    assert pipeline.closed


@pytest.mark.asyncio
async def test_every_submission_is_applied(repository: URLRepository, storage: InMemoryStorage) -> None:
    await _seed(storage, "aaaa0001", "bbbb0002")
    pipeline = CounterPipeline(repository, workers=4)
    await pipeline.start()

    for _ in range(10):
        await pipeline.submit("aaaa0001")
    await pipeline.submit("bbbb0002")
    await pipeline.close(timeout=5)

    assert _counter(storage, "aaaa0001") == 10
    assert _counter(storage, "bbbb0002") == 1


@pytest.mark.asyncio
async def test_full_queue_blocks_submitter(repository: URLRepository, storage: InMemoryStorage) -> None:
    await _seed(storage, "aaaa0001", "bbbb0002", "cccc0003")
    pipeline = CounterPipeline(repository, workers=1, capacity=2)

    await pipeline.submit("aaaa0001")
    await pipeline.submit("bbbb0002")
    blocked = asyncio.create_task(pipeline.submit("cccc0003"))
    for _ in range(5):
        await asyncio.sleep(0)

    assert not blocked.done()

    await pipeline.start()
    await asyncio.wait_for(blocked, timeout=5)
    await pipeline.close(timeout=5)

    assert [_counter(storage, code) for code in ("aaaa0001", "bbbb0002", "cccc0003")] == [1, 1, 1]


@pytest.mark.asyncio
async def test_close_drains_pending_codes() -> None:
    storage = SlowStorage()
    await _seed(storage, "aaaa0001")
    pipeline = CounterPipeline(URLRepository(storage, InMemoryCache()), workers=1)
    await pipeline.start()

    for _ in range(5):
        await pipeline.submit("aaaa0001")
    await pipeline.close()

    assert _counter(storage, "aaaa0001") == 5


@pytest.mark.asyncio
async def test_failed_increment_is_logged_and_worker_continues(
    repository: URLRepository, storage: InMemoryStorage, caplog: pytest.LogCaptureFixture
) -> None:
    await _seed(storage, "aaaa0001")
    storage.fail_on.add("increment_counter")
    pipeline = CounterPipeline(repository, workers=1)
    await pipeline.start()

    with caplog.at_level(logging.WARNING):
        await pipeline.submit("aaaa0001")
        await asyncio.wait_for(pipeline._queue.join(), timeout=5)

    assert "unable to increment code (aaaa0001) counter" in caplog.text
    assert pipeline.running

    storage.fail_on.clear()
    await pipeline.submit("aaaa0001")
    await pipeline.close(timeout=5)

    assert _counter(storage, "aaaa0001") == 1


@pytest.mark.asyncio
async def test_submit_after_close_is_dropped(
    repository: URLRepository, storage: InMemoryStorage, caplog: pytest.LogCaptureFixture
) -> None:
    await _seed(storage, "aaaa0001")
    pipeline = CounterPipeline(repository, workers=1)
    await pipeline.start()
    await pipeline.close()

    with caplog.at_level(logging.WARNING):
        await pipeline.submit("aaaa0001")

    assert "dropping increment" in caplog.text
    assert _counter(storage, "aaaa0001") == 0
    assert pipeline._queue.empty()


@pytest.mark.asyncio
async def test_start_after_close_does_nothing(repository: URLRepository) -> None:
    pipeline = CounterPipeline(repository, workers=2)
    await pipeline.close()
    await pipeline.start()

    assert not pipeline.running
