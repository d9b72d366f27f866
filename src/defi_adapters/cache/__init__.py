from __future__ import annotations

from .codec import JsonCodec, MetadataCodec, freeze
from .key import CacheKey
from .metadata_cache import Builder, MetadataCache
from .store import FileMetadataStore

__all__ = [
    "Builder",
    "CacheKey",
    "FileMetadataStore",
    "JsonCodec",
    "MetadataCache",
    "MetadataCodec",
    "freeze",
]
