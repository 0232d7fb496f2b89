from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration or the login cookie is missing or invalid."""


class UpstreamError(RuntimeError):
    """Raised when the dynamic feed cannot be fetched or its envelope is malformed."""


class ArticleError(RuntimeError):
    """Raised when a full article body cannot be fetched or extracted."""


class StorageError(RuntimeError):
    """Raised when reading or writing the author cache in SQLite fails."""
