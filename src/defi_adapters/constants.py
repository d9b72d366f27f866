"""Chain identifiers, public RPC defaults and protocol contract addresses."""

from enum import Enum


class Chain(str, Enum):
    ETHEREUM = "ethereum"
    OPTIMISM = "optimism"
    BSC = "bsc"
    POLYGON = "polygon"
    BASE = "base"
    ARBITRUM = "arbitrum"
    LINEA = "linea"


CHAIN_IDS: dict[Chain, int] = {
    Chain.ETHEREUM: 1,
    Chain.OPTIMISM: 10,
    Chain.BSC: 56,
    Chain.POLYGON: 137,
    Chain.BASE: 8453,
    Chain.ARBITRUM: 42161,
    Chain.LINEA: 59144,
}

DEFAULT_RPC_URLS: dict[Chain, str] = {
    Chain.ETHEREUM: "https://eth.drpc.org",
    Chain.OPTIMISM: "https://mainnet.optimism.io",
    Chain.BSC: "https://bsc-dataseed.bnbchain.org",
    Chain.POLYGON: "https://polygon-rpc.com",
    Chain.BASE: "https://mainnet.base.org",
    Chain.ARBITRUM: "https://arb1.arbitrum.io/rpc",
    Chain.LINEA: "https://rpc.linea.build",
}

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

NATIVE_TOKEN_SYMBOLS: dict[int, tuple[str, str]] = {
    1: ("ETH", "Ethereum"),
    10: ("ETH", "Ethereum"),
    56: ("BNB", "BNB"),
    137: ("MATIC", "Polygon"),
    8453: ("ETH", "Ethereum"),
    42161: ("ETH", "Ethereum"),
    59144: ("ETH", "Ethereum"),
}

DEFAULT_METADATA_DIR = "metadata"

# https://docs.fluxfinance.com/addresses
FLUX_COMPTROLLER = "0x95Af143a021DF745bc78e845b54591C53a8B3A51"

# ~12s blocks
FLUX_EXPECTED_BLOCKS_PER_YEAR = 2_628_000
