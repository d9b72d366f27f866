from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from ..cache import CacheKey
from ..constants import Chain
from ..domain import (
    Erc20Metadata,
    ProtocolDetails,
    ProtocolPosition,
    ProtocolTokenApr,
    ProtocolTokenApy,
    ProtocolTokenTvl,
    ProtocolTokenUnderlyingRate,
    TokenBalance,
    Underlying,
)


class ProtocolAdapter(ABC):
    """Read interface every protocol product implements.

    Implementations hold their own collaborators (RPC client, metadata
    cache, logger); this class carries no behaviour.
    """

    protocol_id: str
    product_id: str
    supported_chains: tuple[Chain, ...]
    chain_id: int
    cache_key: CacheKey

    @abstractmethod
    def get_protocol_details(self) -> ProtocolDetails:
        """Return the static description of this protocol product."""
        ...

    @abstractmethod
    async def build_metadata(self) -> Mapping[str, Any]:
        """Return the cached metadata document, building it on first use."""
        ...

    @abstractmethod
    async def get_protocol_tokens(self) -> list[Erc20Metadata]:
        """Return every protocol token this product supports."""
        ...

    @abstractmethod
    async def get_positions(
        self,
        user_address: str,
        block_number: int | None = None,
        protocol_token_addresses: list[str] | None = None,
    ) -> list[ProtocolPosition]:
        """Return the user's non-zero protocol token balances with underlyings."""
        ...

    @abstractmethod
    async def get_underlying_token_balances(
        self, protocol_token_balance: TokenBalance, block_number: int | None = None
    ) -> list[Underlying]:
        """Convert a protocol token balance into underlying token balances."""
        ...

    @abstractmethod
    async def unwrap(
        self, protocol_token_address: str, block_number: int | None = None
    ) -> ProtocolTokenUnderlyingRate:
        """Return the underlying amounts backing one whole protocol token."""
        ...

    @abstractmethod
    async def get_apr(
        self,
        protocol_token_address: str,
        block_number: int | None = None,
        intervals_per_year: int | None = None,
    ) -> ProtocolTokenApr: ...

    @abstractmethod
    async def get_apy(
        self,
        protocol_token_address: str,
        block_number: int | None = None,
        intervals_per_year: int | None = None,
    ) -> ProtocolTokenApy: ...

    @abstractmethod
    async def get_total_value_locked(
        self, block_number: int | None = None
    ) -> list[ProtocolTokenTvl]:
        """Return the total supply of every protocol token."""
        ...
