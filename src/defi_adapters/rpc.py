"""Throttled access to a chain's JSON-RPC endpoint."""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING, Any

import backoff
from eth_typing import URI
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ProviderConnectionError

from .logger import get_logger

if TYPE_CHECKING:
    from web3.contract.contract import ContractFunction
    from web3.types import BlockIdentifier

    from .settings import AdapterSettings

logger = get_logger(__name__)


class RpcClient:
    """Read-only contract calls against a single chain.

    web3's HTTP provider is blocking, so every call runs in a worker thread
    behind a semaphore. Connection failures are retried with exponential
    backoff; reverts and decoding errors propagate to the caller unchanged.
    """

    def __init__(
        self,
        w3: Web3,
        *,
        max_calls: int = 5,
        rpc_delay: float = 0.0,
        rpc_jitter: float = 0.0,
    ):
        self.w3 = w3
        self._rpc_sem = asyncio.Semaphore(max_calls)
        self._rpc_delay = rpc_delay  # seconds
        self._rpc_jitter = rpc_jitter  # seconds

    @classmethod
    def from_settings(cls, settings: AdapterSettings) -> RpcClient:
        rpc_url = settings.rpc_url_required
        if settings.using_default_rpc:
            logger.warning(
                "rpc_url not configured for %s. Using default public RPC (%s).",
                settings.chain.value,
                rpc_url,
            )
        w3 = Web3(
            Web3.HTTPProvider(
                URI(rpc_url), request_kwargs={"timeout": settings.rpc_timeout}
            )
        )
        return cls(
            w3,
            max_calls=settings.max_calls,
            rpc_delay=settings.rpc_delay,
            rpc_jitter=settings.rpc_jitter,
        )

    @backoff.on_exception(
        backoff.expo, (ProviderConnectionError), max_time=30, jitter=backoff.full_jitter
    )
    async def _rpc(self, fn, *args, **kwargs):
        """Throttle + backoff a single RPC."""
        async with self._rpc_sem:
            try:
                return await asyncio.to_thread(fn, *args, **kwargs)
            finally:
                delay = self._rpc_delay + random.random() * self._rpc_jitter
                if delay > 0:
                    await asyncio.sleep(delay)

    def contract(self, address: str, abi: list[dict]) -> Contract:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def call(
        self, fn: ContractFunction, block_identifier: BlockIdentifier | None = None
    ) -> Any:
        """Execute a bound contract function as an ``eth_call``.

        Args:
            fn: Contract function with its arguments bound,
                e.g. ``contract.functions.balanceOf(owner)``
            block_identifier: Block to read at; latest when omitted

        Returns:
            The decoded return value.
        """
        if block_identifier is None:
            return await self._rpc(fn.call)
        return await self._rpc(fn.call, block_identifier=block_identifier)
