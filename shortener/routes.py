"""FastAPI route definitions for the shortening service.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    POST   /api
        ├─ URLCreate (request body)
        └─ URLRecord (201, Location: short_url) or 409/422/500/503

    GET    /api/:id
        └─ URLRecord (200) or 404

    DELETE /api/:id
        └─ 200

    GET    /counter/:id
        └─ CounterResponse (200) or 404

    GET    /:code
        └─ 302 Redirect or 404

Error Mapping
=============
- RecordValidationError    -> 422
- DuplicateCodeError       -> 409
- CodeSpaceExhaustedError  -> 503
- any other ShortenerError -> 500
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import RedirectResponse

from shortener.dependencies import ServiceManager, get_service_manager, get_url_service
from shortener.enums import HealthStatus
from shortener.errors import CodeSpaceExhaustedError, DuplicateCodeError, RecordValidationError, ShortenerError
from shortener.schemas import CounterResponse, HealthResponse, URLCreate, URLRecord
from shortener.service import ShorteningService

__all__ = ["router"]

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(manager: ServiceManager = Depends(get_service_manager)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY if await manager.check_database() else HealthStatus.UNHEALTHY
    cache_status = HealthStatus.HEALTHY if await manager.check_cache() else HealthStatus.UNHEALTHY

    # The cache is optional; only the database decides overall health
    return HealthResponse(status=db_status, database=db_status, cache=cache_status)


@router.post("/api", response_model=URLRecord, status_code=201, tags=["api"])
async def add_url(
    payload: URLCreate,
    response: Response,
    service: ShorteningService = Depends(get_url_service),
) -> URLRecord:
    logger.info(f"Handle add url: {payload.url}")
    try:
        record = await service.create(payload.url, payload.code)
    except RecordValidationError as exc:
        raise HTTPException(status_code=422, detail=f"unable to add url: {exc}") from exc
    except DuplicateCodeError as exc:
        raise HTTPException(status_code=409, detail=f"unable to add url: {exc}") from exc
    except CodeSpaceExhaustedError as exc:
        raise HTTPException(status_code=503, detail=f"unable to add url: {exc}") from exc
    except ShortenerError as exc:
        raise HTTPException(status_code=500, detail=f"unable to add url: {exc}") from exc

    response.headers["Location"] = record.short_url
    return record


@router.get("/api/{record_id}", response_model=URLRecord, tags=["api"])
async def get_url(record_id: int, service: ShorteningService = Depends(get_url_service)) -> URLRecord:
    try:
        record = await service.get_by_id(record_id)
    except ShortenerError as exc:
        raise HTTPException(status_code=500, detail=f"unable to fetch url: {exc}") from exc
    if record is None:
        raise HTTPException(status_code=404, detail="Short URL not found")
    return record


@router.delete("/api/{record_id}", tags=["api"])
async def delete_url(record_id: int, service: ShorteningService = Depends(get_url_service)) -> Response:
    logger.info(f"Handle delete url: {record_id}")
    try:
        await service.delete(record_id)
    except ShortenerError as exc:
        raise HTTPException(status_code=500, detail=f"unable to delete url: {exc}") from exc
    return Response(status_code=200)


@router.get("/counter/{record_id}", response_model=CounterResponse, tags=["counter"])
async def get_counter(record_id: int, service: ShorteningService = Depends(get_url_service)) -> CounterResponse:
    try:
        record = await service.get_by_id(record_id)
    except ShortenerError as exc:
        raise HTTPException(status_code=500, detail=f"unable to fetch url: {exc}") from exc
    if record is None:
        raise HTTPException(status_code=404, detail="Short URL not found")
    return CounterResponse(counter=record.counter)


@router.get("/{code}", tags=["redirect"])
async def redirect_short_url(code: str, service: ShorteningService = Depends(get_url_service)) -> RedirectResponse:
    try:
        url = await service.resolve(code)
    except ShortenerError as exc:
        raise HTTPException(status_code=500, detail=f"unable to fetch url: {exc}") from exc
    if url is None:
        raise HTTPException(status_code=404, detail="Short URL not found")

    await service.notify_resolved(code)
    return RedirectResponse(url=url, status_code=302)
