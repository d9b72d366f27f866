from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, TypeVar

from ..errors import MetadataBuildError, MetadataCorruptedError
from ..logger import get_logger
from .codec import JsonCodec, MetadataCodec
from .key import CacheKey
from .store import FileMetadataStore

T = TypeVar("T")

Builder = Callable[[], Awaitable[T]]


class MetadataCache(Generic[T]):
    """Build-once, file-backed cache of metadata documents.

    A document is built the first time its key is requested, persisted, and
    served from memory or disk from then on. While a build for a key is
    running, further requests for that key wait on the same task instead of
    starting another one. A failed build persists nothing, so the next
    request retries it. Stored documents are only replaced through
    ``invalidate``.
    """

    def __init__(
        self,
        store: FileMetadataStore,
        *,
        codec: MetadataCodec[T] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.store = store
        self.codec: MetadataCodec[Any] = codec or JsonCodec()
        self.logger = logger or get_logger(__name__)
        self._documents: dict[CacheKey, T] = {}
        self._in_flight: dict[CacheKey, asyncio.Task[T]] = {}

    def path_for(self, key: CacheKey) -> Path:
        return self.store.path_for(key)

    def is_building(self, key: CacheKey) -> bool:
        return key in self._in_flight

    async def get_or_build(
        self,
        key: CacheKey,
        builder: Builder[T],
        *,
        codec: MetadataCodec[T] | None = None,
    ) -> T:
        """Return the document for ``key``, building it at most once.

        Args:
            key: Identifies the document
            builder: Zero-argument coroutine function computing the document
            codec: Overrides the cache's codec for this key

        Returns:
            The decoded document. Every caller of a key gets the same object.

        Raises:
            MetadataBuildError: The builder (or persisting its result) failed
            MetadataCorruptedError: The stored document cannot be decoded
        """
        document = self._documents.get(key)
        if document is not None:
            return document

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(
                self._load_or_build(key, builder, codec or self.codec),
                name=f"metadata:{key}",
            )
            self._in_flight[key] = task
        else:
            self.logger.debug("Waiting for in-flight metadata build of %s", key)

        # A cancelled waiter must not cancel the build the others wait on
        return await asyncio.shield(task)

    async def invalidate(self, key: CacheKey) -> bool:
        """Drop the stored document for ``key`` so the next request rebuilds it.

        A build already in flight is not interrupted and will store its result.

        Returns:
            Whether a stored document was removed.
        """
        self._documents.pop(key, None)
        removed = await self.store.delete(key)
        if removed:
            self.logger.info("Invalidated metadata for %s", key)
        return removed

    async def _load_or_build(
        self, key: CacheKey, builder: Builder[T], codec: MetadataCodec[T]
    ) -> T:
        try:
            try:
                text = await self.store.read(key)
            except UnicodeDecodeError as exc:
                raise MetadataCorruptedError(
                    key, self.path_for(key), str(exc)
                ) from exc
            if text is None:
                text = await self._build(key, builder, codec)
            else:
                self.logger.debug(
                    "Loaded metadata for %s from %s", key, self.path_for(key)
                )
            document = self._decode(key, text, codec)
            self._documents[key] = document
            return document
        finally:
            self._in_flight.pop(key, None)

    async def _build(
        self, key: CacheKey, builder: Builder[T], codec: MetadataCodec[T]
    ) -> str:
        self.logger.info("Building metadata for %s", key)
        try:
            document = await builder()
            text = codec.dumps(document)
            await self.store.write_atomic(key, text)
        except Exception as exc:
            self.logger.error(
                "Metadata build failed for protocol=%s chain=%s product=%s: %s",
                key.protocol_id,
                key.chain_id,
                key.product_id,
                exc,
            )
            raise MetadataBuildError(key) from exc
        return text

    def _decode(self, key: CacheKey, text: str, codec: MetadataCodec[T]) -> T:
        try:
            return codec.loads(text)
        except (ValueError, KeyError, TypeError) as exc:
            raise MetadataCorruptedError(key, self.path_for(key), str(exc)) from exc
