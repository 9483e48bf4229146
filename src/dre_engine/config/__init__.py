"""Configuration module for the DRE engine."""

from dre_engine.config.logging import (
    configure_logging,
    get_logger,
    report_context,
)
from dre_engine.config.settings import FlatSettings, get_settings

__all__ = [
    "FlatSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "report_context",
]
