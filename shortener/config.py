"""Configuration management for the shortening service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from shortener.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    domain = settings.DOMAIN

Key Behaviours
===============
- Settings are cached after first access.
- Environment variables (or a ``.env`` file) override defaults.
- ``APP_ENV == "development"`` turns on SQL echo.
- ``COUNTER_QUEUE_SIZE`` bounds the counter pipeline; submissions block when full.

Classes:
    Settings:  Pydantic model for all configuration values.
"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "shortening-service"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Public base copied onto every record as ``domain``
    DOMAIN: str = "http://localhost"

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://shortener:shortener@db:5432/shortener"
    DATABASE_POOL_SIZE: int = 20

    # Redis fast-path cache
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 0.5

    # Short code assignment
    CODE_MAX_ATTEMPTS: int = 200

    # Counter pipeline
    COUNTER_WORKERS: int = 4
    COUNTER_QUEUE_SIZE: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
