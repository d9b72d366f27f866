from __future__ import annotations

import pytest

from defi_adapters.rates import (
    calculate_apr,
    calculate_apy,
    rate_from_raw,
    underlying_balance,
)


def test_rate_from_raw():
    assert rate_from_raw(100_000_000_000) == pytest.approx(1e-7)
    assert rate_from_raw(0) == 0


def test_apr_per_block_rate():
    apr_percent = calculate_apr(0.0000001, 2_628_000) * 100

    assert apr_percent == pytest.approx(26.28, abs=1e-9)


def test_apy_compounds_per_block_rate():
    apy_percent = calculate_apy(0.0000001, 2_628_000) * 100

    assert apy_percent == pytest.approx(((1.0000001) ** 2_628_000 - 1) * 100, abs=1e-9)
    assert 30.0 < apy_percent < 30.1


def test_apy_of_zero_rate_is_zero():
    assert calculate_apy(0.0, 2_628_000) == 0.0
    assert calculate_apr(0.0, 2_628_000) == 0.0


def test_underlying_balance_is_exact_integer():
    result = underlying_balance(1_050_000_000_000_000_000, 1_000_000, 6)

    assert result == 1_050_000_000_000_000_000
    assert isinstance(result, int)


def test_underlying_balance_keeps_precision_beyond_float():
    rate_raw = 200_000_000_000_000_000_000_000_001
    balance_raw = 10**30 + 7

    assert underlying_balance(rate_raw, balance_raw, 8) == rate_raw * balance_raw // 10**8


def test_underlying_balance_truncates():
    assert underlying_balance(3, 5, 1) == 1
