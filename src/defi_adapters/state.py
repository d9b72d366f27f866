"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import AdapterSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed to adapter factories to avoid global state and enable testing.
    """

    settings: AdapterSettings
    logger: logging.Logger
