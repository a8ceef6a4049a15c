"""Shortening service - core orchestration between transport and storage.

The service owns three decisions: which code a new URL gets, when an
existing mapping is reused instead of minting a new one, and how a
successful resolution is counted without slowing down the redirect.

Flow Diagram — create()
=======================
::
    ┌─────────────┐
    │ original_url│
    │ [+ code]    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Normalize    │  "example.com" -> "http://example.com"
    │ scheme      │
    └──────┬──────┘
           ▼
    ┌─────────────┐   FOUND
    │ get_by_url  │ ────────► return existing record (idempotent)
    └──────┬──────┘
           ▼ NOT FOUND
    ┌─────────────┐   code given, taken
    │ Resolve code│ ────────► DuplicateCodeError (no write)
    │ (check or   │
    │  generate)  │   generated, taken -> regenerate (bounded)
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Assemble +  │  short_url = domain + "/" + code
    │ validate    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ repository. │  unique violation -> DuplicateCodeError
    │ add         │
    └─────────────┘

Flow Diagram — redirect
=======================
::
    resolve(code) ──► repository.get_url_by_code (cache-aside)
    notify_resolved(code) ──► counter pipeline (fire-and-forget)

Code Space
==========
Codes are 8 draws from 62 symbols: 62**8 ≈ 2.18e14 values. With ``n`` rows
stored a fresh draw collides with probability ``n / 62**8`` (≈ 4.6e-9 at one
million rows), so the retry cap is only reached when the store misbehaves.

Usage Examples
==============
```python
service = ShorteningService(repository, pipeline, domain="http://localhost")
record = await service.create("www.google.com")
url = await service.resolve(record.code)
if url is not None:
    await service.notify_resolved(record.code)
```
"""

import logging
import time

from prometheus_client import Counter, Histogram
from pydantic import ValidationError

from shortener.codegen import CodeGenerator
from shortener.counter import CounterPipeline
from shortener.enums import RequestStatus
from shortener.errors import (
    CodeCheckError,
    CodeSpaceExhaustedError,
    DuplicateCodeError,
    RecordValidationError,
    ShortenerError,
    StoreError,
)
from shortener.repository import URLRepository
from shortener.schemas import CODE_LENGTH, URLRecord

__all__ = ["ShorteningService", "normalize_url", "DEFAULT_MAX_ATTEMPTS"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 200

URL_CREATION_REQUESTS_TOTAL = Counter(
    "shortener_creation_requests_total",
    "Total create requests by outcome",
    ["status"],
)
URL_CREATION_DURATION = Histogram(
    "shortener_creation_duration_seconds",
    "Time taken to create short URLs",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
URL_RESOLVE_REQUESTS_TOTAL = Counter(
    "shortener_resolve_requests_total",
    "Total code resolutions",
    ["found"],
)
CODE_REGENERATIONS_TOTAL = Counter(
    "shortener_code_regenerations_total",
    "Generated codes discarded because they were already taken",
)


def normalize_url(url: str) -> str:
    """Prepend ``http://`` unless the URL already carries an http(s) scheme."""
    if not url.startswith("http://") and not url.startswith("https://"):
        return "http://" + url
    return url


class ShorteningService:
    """Orchestrates code assignment, resolution and counting.

    Args:
        repository: Cache-aside facade over the durable store.
        pipeline: Counter pipeline fed by ``notify_resolved``.
        domain: Public base copied onto every created record.
        generator: Code generator; an os.urandom-backed one by default.
        max_attempts: Upper bound of the generate-and-check loop.
    """

    def __init__(
        self,
        repository: URLRepository,
        pipeline: CounterPipeline,
        domain: str,
        generator: CodeGenerator | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._repository = repository
        self._pipeline = pipeline
        self._domain = domain
        self._generator = generator or CodeGenerator()
        self._max_attempts = max_attempts

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def create(self, original_url: str, code: str | None = None) -> URLRecord:
        """Create a mapping for ``original_url`` or return the existing one.

        Args:
            original_url: Long URL; ``http://`` is prepended when no scheme is present.
            code: Optional caller-chosen code. Empty means "generate one".

        Returns:
            URLRecord: The persisted record (with id), or the record already
            stored for the same normalized URL.

        Raises:
            RecordValidationError: If the assembled record is malformed.
            DuplicateCodeError: If the caller's code is already in use.
            CodeCheckError: If the code existence check failed.
            CodeSpaceExhaustedError: If no free code was found in ``max_attempts``.
            StoreError: On any other store failure.
        """
        start_time = time.perf_counter()
        try:
            record, status = await self._create(original_url, code)
        except RecordValidationError as exc:
            URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.VALIDATION_ERROR).inc()
            logger.warning(f"URL creation rejected: {exc}")
            raise
        except DuplicateCodeError as exc:
            URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.DUPLICATE_CODE).inc()
            logger.warning(f"URL creation rejected: {exc}")
            raise
        except ShortenerError as exc:
            URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            logger.error(f"URL creation error: {exc}")
            raise
        finally:
            URL_CREATION_DURATION.observe(time.perf_counter() - start_time)

        URL_CREATION_REQUESTS_TOTAL.labels(status=status).inc()
        logger.info(f"URL create {status}: {record.code} -> {record.original_url}")
        return record

    async def delete(self, record_id: int) -> None:
        # Cached code -> URL entries are left in place
        await self._repository.delete(record_id)

    async def resolve(self, code: str) -> str | None:
        """Return the original URL for ``code``, or None when it is unknown.

        Raises:
            StoreError: If the lookup itself failed (distinct from a miss).
        """
        url = await self._repository.get_url_by_code(code)
        URL_RESOLVE_REQUESTS_TOTAL.labels(found=str(url is not None).lower()).inc()
        return url

    async def get_by_id(self, record_id: int) -> URLRecord | None:
        return await self._repository.get_by_id(record_id)

    async def notify_resolved(self, code: str) -> None:
        """Queue a counter increment for ``code``.

        Never raises; suspends only while the counter queue is full.
        """
        await self._pipeline.submit(code)

    get_url_by_code = resolve
    increment_counter = notify_resolved

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _create(self, original_url: str, code: str | None) -> tuple[URLRecord, RequestStatus]:
        url = normalize_url(original_url)

        try:
            existing = await self._repository.get_by_url(url)
        except StoreError as exc:
            raise StoreError(f"unable to check if url already exists in the database: {exc}") from exc
        if existing is not None:
            return existing, RequestStatus.EXISTING

        if code:
            if await self._code_exists(code):
                raise DuplicateCodeError(code)
        else:
            code = await self._generate_unique_code()

        record = self._assemble(url, code)
        return await self._repository.add(record), RequestStatus.SUCCESS

    def _assemble(self, url: str, code: str) -> URLRecord:
        try:
            return URLRecord(
                code=code,
                original_url=url,
                short_url=f"{self._domain}/{code}",
                domain=self._domain,
                counter=0,
            )
        except ValidationError as exc:
            raise RecordValidationError(f"invalid url record: {exc}") from exc

    async def _code_exists(self, code: str) -> bool:
        try:
            url = await self._repository.get_url_by_code(code)
        except StoreError as exc:
            raise CodeCheckError(f"unable to check if the code already exists in the database: {exc}") from exc
        return url is not None

    async def _generate_unique_code(self) -> str:
        for _ in range(self._max_attempts):
            code = self._generator.generate(CODE_LENGTH)
            if not await self._code_exists(code):
                return code
            CODE_REGENERATIONS_TOTAL.inc()
            logger.debug(f"Generated code {code} already taken, regenerating")
        raise CodeSpaceExhaustedError(f"no unused code found after {self._max_attempts} attempts")
