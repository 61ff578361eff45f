"""Core app configuration and database."""

from riskledger.core.config import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
