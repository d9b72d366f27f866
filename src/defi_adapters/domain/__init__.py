"""Domain models returned by protocol adapters.

Token amounts are raw on-chain integers scaled by the token's ``decimals``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PositionType(str, Enum):
    SUPPLY = "supply"
    LEND = "lend"
    BORROW = "borrow"
    STAKING = "stake"
    REWARD = "reward"


class AssetType(str, Enum):
    STANDARD_ERC20 = "standard_erc20"
    NON_STANDARD_ERC20 = "non_standard_erc20"


class TokenType(str, Enum):
    PROTOCOL = "protocol"
    UNDERLYING = "underlying"


@dataclass(frozen=True)
class Erc20Metadata:
    """Descriptor of an ERC20 token."""

    address: str
    name: str
    symbol: str
    decimals: int


@dataclass(frozen=True)
class PoolMetadata:
    """A protocol token and the tokens it is a claim on."""

    protocol_token: Erc20Metadata
    underlying_tokens: tuple[Erc20Metadata, ...]


@dataclass(frozen=True)
class ProtocolDetails:
    protocol_id: str
    chain_id: int
    product_id: str
    name: str
    description: str
    site_url: str
    icon_url: str
    position_type: PositionType
    asset_type: AssetType = AssetType.STANDARD_ERC20


@dataclass(frozen=True)
class TokenBalance:
    """A raw balance of a token."""

    address: str
    name: str
    symbol: str
    decimals: int
    balance_raw: int

    @classmethod
    def of(cls, token: Erc20Metadata, balance_raw: int) -> TokenBalance:
        return cls(
            address=token.address,
            name=token.name,
            symbol=token.symbol,
            decimals=token.decimals,
            balance_raw=balance_raw,
        )


@dataclass(frozen=True)
class Underlying(TokenBalance):
    type: TokenType = TokenType.UNDERLYING


@dataclass(frozen=True)
class ProtocolPosition(TokenBalance):
    type: TokenType = TokenType.PROTOCOL
    tokens: tuple[Underlying, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UnderlyingTokenRate:
    """Raw amount of an underlying token backing one whole protocol token."""

    address: str
    name: str
    symbol: str
    decimals: int
    underlying_rate_raw: int
    type: TokenType = TokenType.UNDERLYING


@dataclass(frozen=True)
class ProtocolTokenUnderlyingRate:
    address: str
    name: str
    symbol: str
    decimals: int
    base_rate: int
    tokens: tuple[UnderlyingTokenRate, ...]
    type: TokenType = TokenType.PROTOCOL


@dataclass(frozen=True)
class ProtocolTokenApr:
    address: str
    name: str
    symbol: str
    decimals: int
    apr_decimal: float


@dataclass(frozen=True)
class ProtocolTokenApy:
    address: str
    name: str
    symbol: str
    decimals: int
    apy_decimal: float


@dataclass(frozen=True)
class ProtocolTokenTvl:
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply_raw: int
    type: TokenType = TokenType.PROTOCOL
