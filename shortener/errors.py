"""Error taxonomy for the shortening core.

Synchronous paths (create, delete, get, resolve) raise these to the caller.
``CacheError`` never leaves the repository and counter failures never leave
the pipeline workers; both are only logged.
"""

__all__ = [
    "ShortenerError",
    "RecordValidationError",
    "DuplicateCodeError",
    "CodeCheckError",
    "CodeSpaceExhaustedError",
    "StoreError",
    "CacheError",
]


class ShortenerError(Exception):
    """Base class for every error raised by the shortening core."""


class RecordValidationError(ShortenerError, ValueError):
    """The assembled record breaks a field constraint."""


class DuplicateCodeError(ShortenerError):
    """A caller-supplied code is already in use."""

    def __init__(self, code: str):
        super().__init__(f"code '{code}' already exists in the database")
        self.code = code


class CodeCheckError(ShortenerError):
    """The existence check for a code could not be performed."""


class CodeSpaceExhaustedError(ShortenerError):
    """No unused code was found within the configured number of attempts."""


class StoreError(ShortenerError):
    """The durable store failed."""


class CacheError(ShortenerError):
    """The fast-path cache failed."""
