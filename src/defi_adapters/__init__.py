"""Read-only adapters over on-chain lending protocols."""

from __future__ import annotations

from .cache import CacheKey, FileMetadataStore, MetadataCache
from .errors import (
    AdapterError,
    MetadataBuildError,
    MetadataCorruptedError,
    ProtocolTokenNotFoundError,
)

__all__ = [
    "AdapterError",
    "CacheKey",
    "FileMetadataStore",
    "MetadataBuildError",
    "MetadataCache",
    "MetadataCorruptedError",
    "ProtocolTokenNotFoundError",
]
