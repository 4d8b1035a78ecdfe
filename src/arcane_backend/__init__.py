"""Arcane backend package: time-gated economy services."""

from arcane_backend.settings import BackendSettings, configure_logging, get_settings

__all__ = ["BackendSettings", "configure_logging", "get_settings"]
