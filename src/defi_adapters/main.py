"""CLI entrypoint for defi-adapters."""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer

from .adapters import ADAPTER_REGISTRY, build_adapter
from .cache import FileMetadataStore, MetadataCache
from .constants import Chain
from .logger import get_logger, setup_logging
from .settings import AdapterSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Query lending protocol metadata, positions, rates and TVL.",
)

AdapterArg = Annotated[
    str,
    typer.Argument(help=f"Adapter name ({', '.join(ADAPTER_REGISTRY)})."),
]
BlockOption = Annotated[
    int | None,
    typer.Option("--block-number", help="Read at this block instead of latest."),
]
IntervalsOption = Annotated[
    int | None,
    typer.Option(
        "--intervals-per-year",
        help="Override the protocol's compounding intervals per year.",
    ),
]


def _to_jsonable(value: Any) -> Any:
    """Dataclasses to dicts, enums to values and ints to strings (raw amounts exceed JS precision)."""
    if is_dataclass(value) and not isinstance(value, type):
        return _to_jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def _echo(value: Any) -> None:
    typer.echo(json.dumps(_to_jsonable(value), indent=2))


def _state(ctx: typer.Context) -> AppState:
    return ctx.ensure_object(dict)["state"]


def _block(state: AppState, block_number: int | None) -> int | None:
    return block_number if block_number is not None else state.settings.block_number


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [defi_adapters] table).",
        ),
    ] = None,
    chain: Annotated[
        Chain | None, typer.Option("--chain", help="Chain to query.")
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="RPC endpoint; overrides the chain default."),
    ] = None,
    block_number: Annotated[
        int | None,
        typer.Option("--block-number", help="Default block for live reads."),
    ] = None,
    metadata_dir: Annotated[
        Path | None,
        typer.Option("--metadata-dir", help="Directory holding cached metadata."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
) -> None:
    if config_path:
        os.environ["DEFI_ADAPTERS_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if chain is not None:
        init_kwargs["chain"] = chain
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if block_number is not None:
        init_kwargs["block_number"] = block_number
    if metadata_dir is not None:
        init_kwargs["metadata_dir"] = metadata_dir
    if log_level is not None:
        init_kwargs["log_level"] = log_level

    settings = AdapterSettings(**init_kwargs)
    setup_logging(settings.log_level)
    ctx.ensure_object(dict)["state"] = AppState(
        settings=settings, logger=get_logger("defi_adapters")
    )


@app.command()
def details(ctx: typer.Context, adapter: AdapterArg) -> None:
    """Print the protocol description."""
    _echo(build_adapter(_state(ctx), adapter).get_protocol_details())


@app.command("build-metadata")
def build_metadata(
    ctx: typer.Context,
    adapter: AdapterArg,
    rebuild: Annotated[
        bool,
        typer.Option("--rebuild", help="Delete stored metadata before building."),
    ] = False,
) -> None:
    """Build (or load) the cached metadata and print where it is stored."""
    state = _state(ctx)
    cache = MetadataCache(FileMetadataStore(state.settings.metadata_dir), logger=state.logger)
    instance = build_adapter(state, adapter, metadata_cache=cache)

    async def _run() -> None:
        if rebuild:
            await cache.invalidate(instance.cache_key)
        document = await instance.build_metadata()
        state.logger.info(
            "Metadata for %s holds %d pools", instance.cache_key, len(document)
        )

    asyncio.run(_run())
    typer.echo(str(cache.path_for(instance.cache_key)))


@app.command()
def tokens(ctx: typer.Context, adapter: AdapterArg) -> None:
    """List the protocol tokens."""
    _echo(asyncio.run(build_adapter(_state(ctx), adapter).get_protocol_tokens()))


@app.command()
def positions(
    ctx: typer.Context,
    adapter: AdapterArg,
    user_address: Annotated[str, typer.Argument(help="Account to inspect.")],
    block_number: BlockOption = None,
) -> None:
    """List an account's positions with underlying balances."""
    state = _state(ctx)
    instance = build_adapter(state, adapter)
    _echo(asyncio.run(instance.get_positions(user_address, _block(state, block_number))))


@app.command()
def apr(
    ctx: typer.Context,
    adapter: AdapterArg,
    protocol_token_address: Annotated[str, typer.Argument(help="Protocol token.")],
    block_number: BlockOption = None,
    intervals_per_year: IntervalsOption = None,
) -> None:
    """Print the supply APR (percent) of a protocol token."""
    state = _state(ctx)
    instance = build_adapter(state, adapter)
    _echo(
        asyncio.run(
            instance.get_apr(
                protocol_token_address, _block(state, block_number), intervals_per_year
            )
        )
    )


@app.command()
def apy(
    ctx: typer.Context,
    adapter: AdapterArg,
    protocol_token_address: Annotated[str, typer.Argument(help="Protocol token.")],
    block_number: BlockOption = None,
    intervals_per_year: IntervalsOption = None,
) -> None:
    """Print the supply APY (percent) of a protocol token."""
    state = _state(ctx)
    instance = build_adapter(state, adapter)
    _echo(
        asyncio.run(
            instance.get_apy(
                protocol_token_address, _block(state, block_number), intervals_per_year
            )
        )
    )


@app.command()
def tvl(ctx: typer.Context, adapter: AdapterArg, block_number: BlockOption = None) -> None:
    """Print the total supply of every protocol token."""
    state = _state(ctx)
    instance = build_adapter(state, adapter)
    _echo(asyncio.run(instance.get_total_value_locked(_block(state, block_number))))


if __name__ == "__main__":
    app()
