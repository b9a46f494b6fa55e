"""API routers."""

from . import backup, config, health

__all__ = ["backup", "config", "health"]
