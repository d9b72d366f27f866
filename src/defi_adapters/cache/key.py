from __future__ import annotations

from dataclasses import dataclass


def _check_component(field_name: str, value: str) -> None:
    if not value:
        raise ValueError(f"{field_name} must not be empty")
    if "/" in value or "\\" in value or value in {".", ".."}:
        raise ValueError(f"{field_name} must be a plain path segment, got {value!r}")


@dataclass(frozen=True)
class CacheKey:
    """Identifies one metadata document: a protocol product on a chain."""

    protocol_id: str
    chain_id: int
    product_id: str

    def __post_init__(self) -> None:
        _check_component("protocol_id", self.protocol_id)
        _check_component("product_id", self.product_id)
        if isinstance(self.chain_id, bool) or not isinstance(self.chain_id, int):
            raise ValueError(f"chain_id must be an int, got {self.chain_id!r}")
        if self.chain_id < 0:
            raise ValueError(f"chain_id must be non-negative, got {self.chain_id}")

    def __str__(self) -> str:
        return f"{self.protocol_id}/{self.product_id}@{self.chain_id}"
