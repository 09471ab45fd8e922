"""
Configuration Module

Application configuration loaded from environment variables.

Usage:
======
    from circlematch.config.settings import settings

    db_url = settings.DATABASE_URL
    slot_times = settings.SLOT_TIMES
"""

from circlematch.config.settings import settings, get_settings, Settings

__all__ = [
    "settings",
    "get_settings",
    "Settings",
]
