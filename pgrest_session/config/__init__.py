# Configuration module for the session store
from .settings import (
    ConfigurationError,
    StoreSettings,
    clear_settings_cache,
    create_settings,
    get_settings,
)

__all__ = [
    "StoreSettings",
    "ConfigurationError",
    "create_settings",
    "get_settings",
    "clear_settings_cache",
]
