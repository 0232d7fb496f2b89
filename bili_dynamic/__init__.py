from __future__ import annotations

from .author_cache import AuthorCache, MemoryAuthorCache, SQLiteAuthorCache
from .bilibili_client import ArticleData, BilibiliClient
from .config import load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .errors import ArticleError, ConfigError, StorageError, UpstreamError
from .item import AuthorIdentity, FeedEnvelope, NormalizedItem
from .normalize import build_dynamic_feed, normalize_entry, normalize_feed
from .options import DisplayOptions

__all__ = [
    "AppConfig",
    "ArticleData",
    "ArticleError",
    "AuthorCache",
    "AuthorIdentity",
    "BilibiliClient",
    "ConfigError",
    "DisplayOptions",
    "FeedEnvelope",
    "MemoryAuthorCache",
    "NormalizedItem",
    "SQLiteAuthorCache",
    "StorageError",
    "UpstreamError",
    "build_dynamic_feed",
    "load_config",
    "normalize_entry",
    "normalize_feed",
    "resolve_runtime_secrets",
]
