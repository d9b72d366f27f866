from __future__ import annotations

import json
from functools import cache
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

ERC20_ABI_PATH = ABIS_DIR / "ERC20.json"
COMPTROLLER_ABI_PATH = ABIS_DIR / "Comptroller.json"
FTOKEN_ABI_PATH = ABIS_DIR / "FToken.json"


@cache
def _load_abi_cached(path: Path) -> tuple[dict, ...]:
    with path.open() as f:
        data = json.load(f)
    return tuple(data["abi"])


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    return list(_load_abi_cached(Path(path)))


def load_erc20_abi() -> list[dict]:
    """Load the ERC20 ABI."""
    return load_abi(ERC20_ABI_PATH)


def load_comptroller_abi() -> list[dict]:
    """Load the Compound-style Comptroller ABI."""
    return load_abi(COMPTROLLER_ABI_PATH)


def load_ftoken_abi() -> list[dict]:
    return load_abi(FTOKEN_ABI_PATH)
