"""Exceptions raised by adapters and the metadata cache."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .cache.key import CacheKey


class AdapterError(Exception):
    """Base class for errors raised by this package."""


class MetadataBuildError(AdapterError):
    """The metadata builder for a cache key failed.

    Nothing was persisted for ``key``; a later call retries the build.
    """

    def __init__(self, key: CacheKey, message: str | None = None):
        self.key = key
        super().__init__(message or f"Failed to build metadata for {key}")


class MetadataCorruptedError(AdapterError):
    """A stored metadata document exists but cannot be decoded."""

    def __init__(self, key: CacheKey, path: Path, reason: str):
        self.key = key
        self.path = path
        super().__init__(f"Stored metadata for {key} at {path} is unreadable: {reason}")


class ProtocolTokenNotFoundError(AdapterError, LookupError):
    """A protocol token address is absent from the built metadata."""

    def __init__(self, protocol_token_address: str, key: CacheKey):
        self.protocol_token_address = protocol_token_address
        self.key = key
        super().__init__(
            f"Protocol token pool not found: {protocol_token_address} ({key})"
        )
