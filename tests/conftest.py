from __future__ import annotations

import pytest
from dummies import DAI, FDAI, FUSDC, USDC, DummyRpc

from defi_adapters.adapters.flux import FluxPoolAdapter
from defi_adapters.cache import FileMetadataStore, MetadataCache


def _erc20(rpc: DummyRpc, address: str, name: str, symbol: str, decimals: int) -> None:
    rpc.set(address, "name", name)
    rpc.set(address, "symbol", symbol)
    rpc.set(address, "decimals", decimals)


@pytest.fixture
def flux_rpc() -> DummyRpc:
    rpc = DummyRpc()
    rpc.set(FluxPoolAdapter.comptroller_address, "getAllMarkets", [FUSDC, FDAI])
    _erc20(rpc, FUSDC, "Flux USDC", "fUSDC", 8)
    _erc20(rpc, USDC, "USD Coin", "USDC", 6)
    _erc20(rpc, FDAI, "Flux DAI", "fDAI", 8)
    _erc20(rpc, DAI, "Dai Stablecoin", "DAI", 18)
    rpc.set(FUSDC, "underlying", USDC)
    rpc.set(FDAI, "underlying", DAI)
    return rpc


@pytest.fixture
def metadata_cache(tmp_path) -> MetadataCache:
    return MetadataCache(FileMetadataStore(tmp_path))


@pytest.fixture
def flux_adapter(flux_rpc, metadata_cache) -> FluxPoolAdapter:
    return FluxPoolAdapter(flux_rpc, metadata_cache, chain_id=1)
