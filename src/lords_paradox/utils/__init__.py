"""Shared utilities."""

from .logging_config import (
    clear_simulation_context,
    configure_logging,
    get_simulation_context,
    set_simulation_context,
)

__all__ = [
    "configure_logging",
    "set_simulation_context",
    "clear_simulation_context",
    "get_simulation_context",
]
