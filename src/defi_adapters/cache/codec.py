from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class MetadataCodec(Protocol[T]):
    """Converts a metadata document to and from its stored text.

    ``loads`` should return a value callers cannot mutate, since the
    decoded document is shared by every reader of its cache key.
    """

    def dumps(self, document: T) -> str: ...

    def loads(self, text: str) -> T: ...


def freeze(value: Any) -> Any:
    """Recursively turn dicts into read-only mappings and lists into tuples."""
    if isinstance(value, dict):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(freeze(v) for v in value)
    return value


class JsonCodec:
    """Plain JSON documents, indented and key-sorted so stored files diff cleanly."""

    def dumps(self, document: Any) -> str:
        return json.dumps(document, indent=2, sort_keys=True) + "\n"

    def loads(self, text: str) -> Any:
        return freeze(json.loads(text))
