"""Configuration module."""

from partstock.config.logging import configure_logging, get_logger, ledger_context
from partstock.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "ledger_context",
]
