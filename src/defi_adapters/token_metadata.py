from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from web3 import Web3

from .abi import load_erc20_abi
from .constants import NATIVE_TOKEN_SYMBOLS, ZERO_ADDRESS
from .domain import Erc20Metadata
from .logger import get_logger

if TYPE_CHECKING:
    from .rpc import RpcClient

logger = get_logger(__name__)


def native_token_metadata(chain_id: int) -> Erc20Metadata:
    symbol, name = NATIVE_TOKEN_SYMBOLS.get(chain_id, ("ETH", "Ethereum"))
    return Erc20Metadata(address=ZERO_ADDRESS, name=name, symbol=symbol, decimals=18)


async def get_token_metadata(
    rpc: RpcClient, token_address: str, chain_id: int
) -> Erc20Metadata:
    """Read name, symbol and decimals of an ERC20 token.

    The zero address stands for the chain's native token and is resolved
    without any RPC calls.
    """
    if int(token_address, 16) == 0:
        return native_token_metadata(chain_id)

    address = Web3.to_checksum_address(token_address)
    contract = rpc.contract(address, load_erc20_abi())
    name, symbol, decimals = await asyncio.gather(
        rpc.call(contract.functions.name()),
        rpc.call(contract.functions.symbol()),
        rpc.call(contract.functions.decimals()),
    )
    logger.debug("Token metadata for %s: %s (%s decimals)", address, symbol, decimals)
    return Erc20Metadata(
        address=address, name=name, symbol=symbol, decimals=int(decimals)
    )
