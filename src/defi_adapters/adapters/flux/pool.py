from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from web3 import Web3
from web3.contract import Contract

from ...abi import load_comptroller_abi, load_ftoken_abi
from ...cache import CacheKey, MetadataCache
from ...constants import (
    CHAIN_IDS,
    FLUX_COMPTROLLER,
    FLUX_EXPECTED_BLOCKS_PER_YEAR,
    Chain,
)
from ...domain import (
    AssetType,
    Erc20Metadata,
    PoolMetadata,
    PositionType,
    ProtocolDetails,
    ProtocolPosition,
    ProtocolTokenApr,
    ProtocolTokenApy,
    ProtocolTokenTvl,
    ProtocolTokenUnderlyingRate,
    TokenBalance,
    Underlying,
    UnderlyingTokenRate,
)
from ...errors import ProtocolTokenNotFoundError
from ...logger import get_logger
from ...rates import calculate_apr, calculate_apy, rate_from_raw, underlying_balance
from ...token_metadata import get_token_metadata
from ..base import ProtocolAdapter
from ..pool_metadata import POOL_METADATA_CODEC, PoolMetadataDocument, find_pool

if TYPE_CHECKING:
    from ...rpc import RpcClient


class FluxPoolAdapter(ProtocolAdapter):
    """Lending pools of Flux Finance, a Compound v2 fork.

    Each fToken is a protocol token with a single underlying token. Market
    listings and token descriptors are cached; exchange rates, supply rates
    and balances are read live.
    """

    protocol_id = "flux"
    product_id = "pool"
    supported_chains = (Chain.ETHEREUM,)

    EXPECTED_BLOCKS_PER_YEAR = FLUX_EXPECTED_BLOCKS_PER_YEAR

    comptroller_address = Web3.to_checksum_address(FLUX_COMPTROLLER)

    def __init__(
        self,
        rpc: RpcClient,
        metadata_cache: MetadataCache,
        *,
        chain_id: int = CHAIN_IDS[Chain.ETHEREUM],
        logger: logging.Logger | None = None,
    ):
        self.rpc = rpc
        self.metadata_cache = metadata_cache
        self.chain_id = chain_id
        self.logger = logger or get_logger(__name__)
        self.cache_key = CacheKey(self.protocol_id, chain_id, self.product_id)

    def get_protocol_details(self) -> ProtocolDetails:
        return ProtocolDetails(
            protocol_id=self.protocol_id,
            chain_id=self.chain_id,
            product_id=self.product_id,
            name="Flux",
            description="Flux pool adapter",
            site_url="https://fluxfinance.com",
            icon_url="https://docs.fluxfinance.com/img/favicon.svg",
            position_type=PositionType.LEND,
            asset_type=AssetType.STANDARD_ERC20,
        )

    async def build_metadata(self) -> PoolMetadataDocument:
        return await self.metadata_cache.get_or_build(
            self.cache_key, self._build_metadata, codec=POOL_METADATA_CODEC
        )

    async def _build_metadata(self) -> dict[str, PoolMetadata]:
        comptroller = self.rpc.contract(self.comptroller_address, load_comptroller_abi())
        protocol_tokens = await self.rpc.call(comptroller.functions.getAllMarkets())
        protocol_tokens_metadata = await asyncio.gather(
            *(
                get_token_metadata(self.rpc, address, self.chain_id)
                for address in protocol_tokens
            )
        )

        metadata: dict[str, PoolMetadata] = {}
        for protocol_token in protocol_tokens_metadata:
            ftoken = self._ftoken(protocol_token.address)
            underlying_address = Web3.to_checksum_address(
                await self.rpc.call(ftoken.functions.underlying())
            )
            underlying_token = await get_token_metadata(
                self.rpc, underlying_address, self.chain_id
            )
            metadata[protocol_token.address] = PoolMetadata(
                protocol_token=protocol_token,
                underlying_tokens=(underlying_token,),
            )
        return metadata

    async def get_protocol_tokens(self) -> list[Erc20Metadata]:
        return [pool.protocol_token for pool in (await self.build_metadata()).values()]

    async def get_positions(
        self,
        user_address: str,
        block_number: int | None = None,
        protocol_token_addresses: list[str] | None = None,
    ) -> list[ProtocolPosition]:
        protocol_tokens = await self.get_protocol_tokens()
        if protocol_token_addresses is not None:
            wanted = {address.lower() for address in protocol_token_addresses}
            protocol_tokens = [
                token for token in protocol_tokens if token.address.lower() in wanted
            ]

        owner = Web3.to_checksum_address(user_address)
        balances = await asyncio.gather(
            *(
                self.rpc.call(
                    self._ftoken(token.address).functions.balanceOf(owner),
                    block_number,
                )
                for token in protocol_tokens
            )
        )

        positions: list[ProtocolPosition] = []
        for token, balance_raw in zip(protocol_tokens, balances):
            if balance_raw == 0:
                continue
            protocol_token_balance = TokenBalance.of(token, balance_raw)
            underlying = await self.get_underlying_token_balances(
                protocol_token_balance, block_number
            )
            positions.append(
                ProtocolPosition(
                    address=token.address,
                    name=token.name,
                    symbol=token.symbol,
                    decimals=token.decimals,
                    balance_raw=balance_raw,
                    tokens=tuple(underlying),
                )
            )
        return positions

    async def get_underlying_token_balances(
        self, protocol_token_balance: TokenBalance, block_number: int | None = None
    ) -> list[Underlying]:
        pool = await self._fetch_pool_metadata(protocol_token_balance.address)
        conversion = await self._get_underlying_token_conversion_rate(
            pool, block_number
        )
        rates = {rate.address: rate.underlying_rate_raw for rate in conversion}

        return [
            Underlying(
                address=token.address,
                name=token.name,
                symbol=token.symbol,
                decimals=token.decimals,
                balance_raw=underlying_balance(
                    rates[token.address],
                    protocol_token_balance.balance_raw,
                    protocol_token_balance.decimals,
                ),
            )
            for token in pool.underlying_tokens
        ]

    async def unwrap(
        self, protocol_token_address: str, block_number: int | None = None
    ) -> ProtocolTokenUnderlyingRate:
        pool = await self._fetch_pool_metadata(protocol_token_address)
        rates = await self._get_underlying_token_conversion_rate(pool, block_number)
        protocol_token = pool.protocol_token
        return ProtocolTokenUnderlyingRate(
            address=protocol_token.address,
            name=protocol_token.name,
            symbol=protocol_token.symbol,
            decimals=protocol_token.decimals,
            base_rate=10**protocol_token.decimals,
            tokens=tuple(rates),
        )

    async def get_total_value_locked(
        self, block_number: int | None = None
    ) -> list[ProtocolTokenTvl]:
        protocol_tokens = await self.get_protocol_tokens()
        total_supplies = await asyncio.gather(
            *(
                self.rpc.call(
                    self._ftoken(token.address).functions.totalSupply(), block_number
                )
                for token in protocol_tokens
            )
        )
        return [
            ProtocolTokenTvl(
                address=token.address,
                name=token.name,
                symbol=token.symbol,
                decimals=token.decimals,
                total_supply_raw=total_supply_raw,
            )
            for token, total_supply_raw in zip(protocol_tokens, total_supplies)
        ]

    async def get_apr(
        self,
        protocol_token_address: str,
        block_number: int | None = None,
        intervals_per_year: int | None = None,
    ) -> ProtocolTokenApr:
        protocol_token = await self._fetch_protocol_token_metadata(
            protocol_token_address
        )
        supply_rate = await self._get_supply_rate_per_block(
            protocol_token.address, block_number
        )
        if intervals_per_year is None:
            intervals_per_year = self.EXPECTED_BLOCKS_PER_YEAR
        apr = calculate_apr(supply_rate, intervals_per_year)
        return ProtocolTokenApr(
            address=protocol_token.address,
            name=protocol_token.name,
            symbol=protocol_token.symbol,
            decimals=protocol_token.decimals,
            apr_decimal=apr * 100,
        )

    async def get_apy(
        self,
        protocol_token_address: str,
        block_number: int | None = None,
        intervals_per_year: int | None = None,
    ) -> ProtocolTokenApy:
        protocol_token = await self._fetch_protocol_token_metadata(
            protocol_token_address
        )
        supply_rate = await self._get_supply_rate_per_block(
            protocol_token.address, block_number
        )
        if intervals_per_year is None:
            intervals_per_year = self.EXPECTED_BLOCKS_PER_YEAR
        apy = calculate_apy(supply_rate, intervals_per_year)
        return ProtocolTokenApy(
            address=protocol_token.address,
            name=protocol_token.name,
            symbol=protocol_token.symbol,
            decimals=protocol_token.decimals,
            apy_decimal=apy * 100,
        )

    def _ftoken(self, address: str) -> Contract:
        return self.rpc.contract(address, load_ftoken_abi())

    async def _get_supply_rate_per_block(
        self, protocol_token_address: str, block_number: int | None
    ) -> float:
        supply_rate_raw = await self.rpc.call(
            self._ftoken(protocol_token_address).functions.supplyRatePerBlock(),
            block_number,
        )
        return rate_from_raw(supply_rate_raw)

    async def _get_underlying_token_conversion_rate(
        self, pool: PoolMetadata, block_number: int | None
    ) -> list[UnderlyingTokenRate]:
        exchange_rate = await self.rpc.call(
            self._ftoken(pool.protocol_token.address).functions.exchangeRateStored(),
            block_number,
        )
        underlying_token = pool.underlying_tokens[0]
        return [
            UnderlyingTokenRate(
                address=underlying_token.address,
                name=underlying_token.name,
                symbol=underlying_token.symbol,
                decimals=underlying_token.decimals,
                underlying_rate_raw=exchange_rate,
            )
        ]

    async def _fetch_protocol_token_metadata(
        self, protocol_token_address: str
    ) -> Erc20Metadata:
        return (await self._fetch_pool_metadata(protocol_token_address)).protocol_token

    async def _fetch_pool_metadata(self, protocol_token_address: str) -> PoolMetadata:
        pool = find_pool(await self.build_metadata(), protocol_token_address)
        if pool is None:
            self.logger.error(
                "Protocol token pool not found: protocol=%s chain=%s product=%s "
                "protocol_token=%s",
                self.protocol_id,
                self.chain_id,
                self.product_id,
                protocol_token_address,
            )
            raise ProtocolTokenNotFoundError(protocol_token_address, self.cache_key)
        return pool
