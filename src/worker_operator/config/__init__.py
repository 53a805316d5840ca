"""Operator configuration."""

from worker_operator.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
