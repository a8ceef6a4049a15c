"""Pydantic schemas for the shortening record and the HTTP payloads.

Schema Hierarchy
=================
::
    URLRecord (domain record, also the HTTP response body)
    ├─ id: int | None          (None until persisted)
    ├─ code: str               (exactly 8 of [A-Za-z0-9])
    ├─ original_url: str       (>= 8 chars, parseable)
    ├─ short_url: str          (domain + "/" + code)
    ├─ domain: str             (>= 8 chars)
    └─ counter: int            (>= 0)

    URLCreate (Input)
    ├─ url: str
    └─ code: str | None

    CounterResponse (Output)
    └─ counter: int

    HealthResponse (Output)
    ├─ status
    ├─ database
    └─ cache

Key Behaviours
===============
- ``URLRecord`` carries every field constraint; building one is the
  validation step of create.
- ``URLCreate`` does not validate the URL itself: scheme normalization
  happens in the service before the record is validated.
- Models read ORM rows through ``from_attributes``.
"""

from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from shortener.enums import HealthStatus

__all__ = [
    "CODE_LENGTH",
    "URLRecord",
    "URLCreate",
    "CounterResponse",
    "HealthResponse",
]

CODE_LENGTH = 8
CODE_PATTERN = rf"^[A-Za-z0-9]{{{CODE_LENGTH}}}$"


class URLRecord(BaseModel):
    id: int | None = None
    code: str = Field(..., pattern=CODE_PATTERN)
    original_url: str = Field(..., min_length=8)
    short_url: str
    domain: str = Field(..., min_length=8)
    counter: int = Field(0, ge=0)

    model_config = {"from_attributes": True}

    @field_validator("original_url", "short_url")
    @classmethod
    def validate_parseable(cls, v: str) -> str:
        # urlsplit raises ValueError on e.g. unbalanced IPv6 brackets
        urlsplit(v)
        return v


class URLCreate(BaseModel):
    url: str = ""
    code: str | None = Field(None, description="Optional 8-character code; generated when omitted.")


class CounterResponse(BaseModel):
    counter: int


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus
