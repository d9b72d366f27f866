"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import CHAIN_IDS, DEFAULT_METADATA_DIR, DEFAULT_RPC_URLS, Chain

load_dotenv()


class TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-precedence source reading a TOML file.

    The file may hold settings at the top level or under a
    ``[defi_adapters]`` table.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        if not self._path:
            local_config = Path("defi-adapters.toml")
            user_config = Path.home() / ".config" / "defi-adapters" / "config.toml"
            if local_config.exists():
                self._path = local_config
            elif user_config.exists():
                self._path = user_config
            else:
                return {}

        if not self._path.exists():
            return {}

        with self._path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get("defi_adapters", data)
        if not isinstance(body, dict):
            return {}
        return body


class AdapterSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with DEFI_ADAPTERS_)
    - Config file (TOML), lowest precedence
    """

    chain: Chain = Chain.ETHEREUM
    rpc_url: str | None = None
    block_number: int | None = None

    # --- metadata cache ---
    metadata_dir: Path = Path(DEFAULT_METADATA_DIR)

    # --- RPC settings ---
    max_calls: int = Field(default=5, ge=1)
    rpc_delay: float = Field(default=0.0, ge=0)
    rpc_jitter: float = Field(default=0.0, ge=0)
    rpc_timeout: float = Field(default=15.0, gt=0)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="DEFI_ADAPTERS_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("DEFI_ADAPTERS_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    @property
    def chain_id(self) -> int:
        return CHAIN_IDS[self.chain]

    @property
    def rpc_url_required(self) -> str:
        """Get the configured RPC URL or the chain's public default."""
        if self.rpc_url is not None:
            return self.rpc_url
        if self.chain not in DEFAULT_RPC_URLS:
            raise ValueError(f"rpc_url must be configured for {self.chain.value}")
        return DEFAULT_RPC_URLS[self.chain]

    @property
    def using_default_rpc(self) -> bool:
        return self.rpc_url is None
