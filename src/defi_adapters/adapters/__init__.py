from __future__ import annotations

from typing import TYPE_CHECKING

from ..cache import FileMetadataStore, MetadataCache
from ..rpc import RpcClient
from .base import ProtocolAdapter
from .flux import FluxPoolAdapter

if TYPE_CHECKING:
    from ..state import AppState

ADAPTER_REGISTRY: dict[str, type[ProtocolAdapter]] = {
    "flux": FluxPoolAdapter,
}


def get_adapter_class(adapter_name: str) -> type[ProtocolAdapter]:
    """Get adapter class by name.

    Args:
        adapter_name: Name of the adapter (case-insensitive)

    Returns:
        Adapter class

    Raises:
        ValueError: If adapter_name is not recognized
    """
    adapter_name_normalized = adapter_name.lower()
    if adapter_name_normalized not in ADAPTER_REGISTRY:
        raise ValueError(
            f"Unknown adapter '{adapter_name}'. "
            f"Available: {', '.join(ADAPTER_REGISTRY.keys())}"
        )
    return ADAPTER_REGISTRY[adapter_name_normalized]


def build_adapter(
    state: AppState,
    adapter_name: str,
    *,
    rpc: RpcClient | None = None,
    metadata_cache: MetadataCache | None = None,
) -> ProtocolAdapter:
    """Wire an adapter to the RPC endpoint and metadata directory in settings."""
    adapter_cls = get_adapter_class(adapter_name)
    settings = state.settings
    if settings.chain not in adapter_cls.supported_chains:
        supported = ", ".join(chain.value for chain in adapter_cls.supported_chains)
        raise ValueError(
            f"Adapter '{adapter_name}' does not support chain "
            f"{settings.chain.value}. Supported: {supported}"
        )
    if rpc is None:
        rpc = RpcClient.from_settings(settings)
    if metadata_cache is None:
        metadata_cache = MetadataCache(
            FileMetadataStore(settings.metadata_dir), logger=state.logger
        )
    return adapter_cls(
        rpc, metadata_cache, chain_id=settings.chain_id, logger=state.logger
    )


__all__ = [
    "ADAPTER_REGISTRY",
    "FluxPoolAdapter",
    "ProtocolAdapter",
    "build_adapter",
    "get_adapter_class",
]
