"""
Configuration for ElurInfo: settings and logging.
"""
from elurinfo.config.logging_setup import setup_logging
from elurinfo.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "setup_logging",
]
