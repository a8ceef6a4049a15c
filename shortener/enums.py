"""Shared enums for the shortening service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "CacheStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    EXISTING = "existing"
    VALIDATION_ERROR = "validation_error"
    DUPLICATE_CODE = "duplicate_code"
    ERROR = "error"


class CacheStatus(StrEnum):
    """Cache lookup outcomes for metrics."""

    HIT = "hit"
    MISS = "miss"
    ERROR = "error"
