from __future__ import annotations

import asyncio
import json
import logging

import pytest
from dummies import DAI, FDAI, FUSDC, USDC, USER, DummyRpc

from defi_adapters.adapters.flux import FluxPoolAdapter
from defi_adapters.cache import FileMetadataStore, MetadataCache
from defi_adapters.domain import (
    Erc20Metadata,
    PositionType,
    TokenBalance,
    TokenType,
)
from defi_adapters.errors import MetadataBuildError, ProtocolTokenNotFoundError

MISSING = "0x9000000000000000000000000000000000000009"


@pytest.mark.asyncio
async def test_build_metadata_pairs_protocol_and_underlying_tokens(flux_adapter):
    metadata = await flux_adapter.build_metadata()

    assert list(metadata) == [FUSDC, FDAI]
    assert metadata[FUSDC].protocol_token == Erc20Metadata(
        address=FUSDC, name="Flux USDC", symbol="fUSDC", decimals=8
    )
    assert metadata[FUSDC].underlying_tokens == (
        Erc20Metadata(address=USDC, name="USD Coin", symbol="USDC", decimals=6),
    )
    assert metadata[FDAI].underlying_tokens[0].address == DAI


@pytest.mark.asyncio
async def test_metadata_file_layout(flux_adapter, metadata_cache, tmp_path):
    await flux_adapter.build_metadata()

    path = tmp_path / "flux" / "pool" / "1.json"
    assert metadata_cache.path_for(flux_adapter.cache_key) == path
    stored = json.loads(path.read_text())
    assert stored[FUSDC]["protocolToken"]["symbol"] == "fUSDC"
    assert stored[FUSDC]["underlyingTokens"] == [
        {"address": USDC, "decimals": 6, "name": "USD Coin", "symbol": "USDC"}
    ]


@pytest.mark.asyncio
async def test_metadata_is_built_once_across_operations(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "totalSupply", 10)
    flux_rpc.set(FDAI, "totalSupply", 20)
    flux_rpc.set(FUSDC, "supplyRatePerBlock", 0)

    await asyncio.gather(
        flux_adapter.get_protocol_tokens(),
        flux_adapter.get_total_value_locked(),
        flux_adapter.get_apr(FUSDC),
    )
    await flux_adapter.get_protocol_tokens()

    assert flux_rpc.count("getAllMarkets") == 1
    assert flux_rpc.count("underlying") == 2


@pytest.mark.asyncio
async def test_new_adapter_reads_stored_metadata(flux_adapter, tmp_path):
    await flux_adapter.build_metadata()

    restarted = FluxPoolAdapter(
        DummyRpc(), MetadataCache(FileMetadataStore(tmp_path)), chain_id=1
    )
    tokens = await restarted.get_protocol_tokens()

    assert [token.symbol for token in tokens] == ["fUSDC", "fDAI"]


@pytest.mark.asyncio
async def test_build_failure_surfaces_and_stores_nothing(flux_rpc, metadata_cache, tmp_path):
    flux_rpc.set(FDAI, "underlying", ConnectionError("rpc down"))
    adapter = FluxPoolAdapter(flux_rpc, metadata_cache, chain_id=1)

    with pytest.raises(MetadataBuildError):
        await adapter.get_protocol_tokens()
    assert not (tmp_path / "flux" / "pool" / "1.json").exists()

    flux_rpc.set(FDAI, "underlying", DAI)
    assert len(await adapter.get_protocol_tokens()) == 2


@pytest.mark.asyncio
async def test_get_protocol_tokens(flux_adapter):
    tokens = await flux_adapter.get_protocol_tokens()

    assert [token.address for token in tokens] == [FUSDC, FDAI]


@pytest.mark.asyncio
async def test_underlying_balance_uses_exchange_rate_at_block(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "exchangeRateStored", 1_050_000_000_000_000_000)
    balance = TokenBalance(
        address=FUSDC, name="Flux USDC", symbol="fUSDC", decimals=8, balance_raw=1_000_000
    )

    underlying = await flux_adapter.get_underlying_token_balances(balance, 19_000_000)

    assert len(underlying) == 1
    assert underlying[0].address == USDC
    assert underlying[0].type == TokenType.UNDERLYING
    assert underlying[0].balance_raw == 1_050_000_000_000_000_000 * 1_000_000 // 10**8
    assert (FUSDC, "exchangeRateStored", (), 19_000_000) in flux_rpc.calls


@pytest.mark.asyncio
async def test_underlying_balance_with_six_decimal_protocol_token(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "exchangeRateStored", 1_050_000_000_000_000_000)
    balance = TokenBalance(
        address=FUSDC, name="Flux USDC", symbol="fUSDC", decimals=6, balance_raw=1_000_000
    )

    underlying = await flux_adapter.get_underlying_token_balances(balance)

    assert underlying[0].balance_raw == 1_050_000_000_000_000_000


@pytest.mark.asyncio
async def test_unknown_protocol_token_raises_not_found(flux_adapter, caplog):
    caplog.set_level(logging.ERROR)
    balance = TokenBalance(
        address=MISSING, name="?", symbol="?", decimals=8, balance_raw=1
    )

    with pytest.raises(ProtocolTokenNotFoundError) as exc_info:
        await flux_adapter.get_underlying_token_balances(balance)

    assert exc_info.value.protocol_token_address == MISSING
    assert exc_info.value.key == flux_adapter.cache_key
    assert "Protocol token pool not found" in caplog.text
    assert "protocol=flux chain=1 product=pool" in caplog.text
    assert MISSING in caplog.text


@pytest.mark.asyncio
async def test_unknown_protocol_token_for_rates(flux_adapter):
    with pytest.raises(ProtocolTokenNotFoundError):
        await flux_adapter.get_apr(MISSING)
    with pytest.raises(ProtocolTokenNotFoundError):
        await flux_adapter.get_apy(MISSING)


@pytest.mark.asyncio
async def test_get_apr(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "supplyRatePerBlock", 100_000_000_000)

    apr = await flux_adapter.get_apr(FUSDC, block_number=123)

    assert apr.symbol == "fUSDC"
    assert apr.apr_decimal == pytest.approx(26.28)
    assert (FUSDC, "supplyRatePerBlock", (), 123) in flux_rpc.calls


@pytest.mark.asyncio
async def test_get_apy(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "supplyRatePerBlock", 100_000_000_000)

    apy = await flux_adapter.get_apy(FUSDC)

    assert apy.symbol == "fUSDC"
    assert apy.apy_decimal == pytest.approx(((1 + 1e-7) ** 2_628_000 - 1) * 100)


@pytest.mark.asyncio
async def test_interval_count_can_be_overridden(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "supplyRatePerBlock", 100_000_000_000)

    apr = await flux_adapter.get_apr(FUSDC, intervals_per_year=31_536_000)

    assert apr.apr_decimal == pytest.approx(1e-7 * 31_536_000 * 100)


@pytest.mark.asyncio
async def test_zero_intervals_is_not_replaced_by_default(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "supplyRatePerBlock", 100_000_000_000)

    apr = await flux_adapter.get_apr(FUSDC, intervals_per_year=0)
    apy = await flux_adapter.get_apy(FUSDC, intervals_per_year=0)

    assert apr.apr_decimal == 0
    assert apy.apy_decimal == 0


@pytest.mark.asyncio
async def test_get_total_value_locked(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "totalSupply", 5 * 10**16)
    flux_rpc.set(FDAI, "totalSupply", 7 * 10**16)

    tvl = await flux_adapter.get_total_value_locked(block_number=42)

    assert [(entry.symbol, entry.total_supply_raw) for entry in tvl] == [
        ("fUSDC", 5 * 10**16),
        ("fDAI", 7 * 10**16),
    ]
    assert all(entry.type == TokenType.PROTOCOL for entry in tvl)
    assert {call[3] for call in flux_rpc.calls if call[1] == "totalSupply"} == {42}


@pytest.mark.asyncio
async def test_live_read_failure_propagates(flux_adapter, flux_rpc):
    flux_rpc.set(FUSDC, "totalSupply", 1)
    flux_rpc.set(FDAI, "totalSupply", ConnectionError("rpc down"))

    with pytest.raises(ConnectionError):
        await flux_adapter.get_total_value_locked()


@pytest.mark.asyncio
async def test_get_positions_skips_empty_balances(flux_adapter, flux_rpc):
    balances = {USER: 2 * 10**8}
    flux_rpc.set(FUSDC, "balanceOf", lambda owner: balances.get(owner, 0))
    flux_rpc.set(FDAI, "balanceOf", 0)
    flux_rpc.set(FUSDC, "exchangeRateStored", 2 * 10**14)

    positions = await flux_adapter.get_positions(USER.lower())

    assert len(positions) == 1
    position = positions[0]
    assert position.address == FUSDC
    assert position.balance_raw == 2 * 10**8
    assert position.type == TokenType.PROTOCOL
    assert [(t.symbol, t.balance_raw) for t in position.tokens] == [
        ("USDC", 2 * 10**14 * 2 * 10**8 // 10**8)
    ]


@pytest.mark.asyncio
async def test_get_positions_filters_protocol_tokens(flux_adapter, flux_rpc):
    flux_rpc.set(FDAI, "balanceOf", 10**8)
    flux_rpc.set(FDAI, "exchangeRateStored", 2 * 10**26)

    positions = await flux_adapter.get_positions(
        USER, block_number=7, protocol_token_addresses=[FDAI.lower()]
    )

    assert [p.symbol for p in positions] == ["fDAI"]
    assert flux_rpc.count("balanceOf") == 1
    assert (FDAI, "balanceOf", (USER,), 7) in flux_rpc.calls


@pytest.mark.asyncio
async def test_unwrap(flux_adapter, flux_rpc):
    flux_rpc.set(FDAI, "exchangeRateStored", 2 * 10**26)

    rate = await flux_adapter.unwrap(FDAI)

    assert rate.base_rate == 10**8
    assert [(t.address, t.underlying_rate_raw) for t in rate.tokens] == [
        (DAI, 2 * 10**26)
    ]


def test_protocol_details(flux_adapter):
    details = flux_adapter.get_protocol_details()

    assert details.protocol_id == "flux"
    assert details.product_id == "pool"
    assert details.chain_id == 1
    assert details.position_type == PositionType.LEND
