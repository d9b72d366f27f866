from __future__ import annotations

from .pool import FluxPoolAdapter

__all__ = ["FluxPoolAdapter"]
