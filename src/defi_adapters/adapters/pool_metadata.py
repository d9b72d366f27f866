"""Stored form of pool metadata documents.

A document maps each protocol token address to its descriptor and the
ordered descriptors of its underlying tokens::

    {
      "0x465a...": {
        "protocolToken": {"address": ..., "name": ..., "symbol": ..., "decimals": 8},
        "underlyingTokens": [{...}]
      }
    }
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict
from types import MappingProxyType
from typing import Any

from ..domain import Erc20Metadata, PoolMetadata

PoolMetadataDocument = Mapping[str, PoolMetadata]


def _token_from_dict(data: Mapping[str, Any]) -> Erc20Metadata:
    return Erc20Metadata(
        address=str(data["address"]),
        name=str(data["name"]),
        symbol=str(data["symbol"]),
        decimals=int(data["decimals"]),
    )


class PoolMetadataCodec:
    def dumps(self, document: PoolMetadataDocument) -> str:
        body = {
            address: {
                "protocolToken": asdict(pool.protocol_token),
                "underlyingTokens": [asdict(t) for t in pool.underlying_tokens],
            }
            for address, pool in document.items()
        }
        return json.dumps(body, indent=2, sort_keys=True) + "\n"

    def loads(self, text: str) -> PoolMetadataDocument:
        body = json.loads(text)
        if not isinstance(body, dict):
            raise ValueError("pool metadata must be a JSON object")
        return MappingProxyType(
            {
                address: PoolMetadata(
                    protocol_token=_token_from_dict(entry["protocolToken"]),
                    underlying_tokens=tuple(
                        _token_from_dict(t) for t in entry["underlyingTokens"]
                    ),
                )
                for address, entry in body.items()
            }
        )


POOL_METADATA_CODEC = PoolMetadataCodec()


def find_pool(
    document: PoolMetadataDocument, protocol_token_address: str
) -> PoolMetadata | None:
    """Look up a pool by protocol token address, ignoring hex case."""
    pool = document.get(protocol_token_address)
    if pool is not None:
        return pool
    wanted = protocol_token_address.lower()
    for address, candidate in document.items():
        if address.lower() == wanted:
            return candidate
    return None
