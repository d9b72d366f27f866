from __future__ import annotations

RATE_SCALE = 10**18


def rate_from_raw(rate_raw: int, scale: int = RATE_SCALE) -> float:
    """Convert an on-chain fixed-point rate (1e18 = 100%) to a fraction."""
    return rate_raw / scale


def calculate_apr(rate_per_interval: float, intervals_per_year: int) -> float:
    """Simple annual rate, as a fraction, from a per-interval rate."""
    return rate_per_interval * intervals_per_year


def calculate_apy(rate_per_interval: float, intervals_per_year: int) -> float:
    """Compounded annual yield, as a fraction, from a per-interval rate."""
    return (1 + rate_per_interval) ** intervals_per_year - 1


def underlying_balance(rate_raw: int, balance_raw: int, decimals: int) -> int:
    """Convert a protocol token balance to the underlying token's raw units.

    Args:
        rate_raw: Underlying raw amount per whole protocol token
        balance_raw: Protocol token balance in raw units
        decimals: Decimals of the protocol token

    Returns:
        Underlying balance in raw units.

    Notes:
        - Pure integer arithmetic; the division truncates toward zero.
    """
    return rate_raw * balance_raw // 10**decimals
