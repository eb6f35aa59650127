"""
Settings loading for the connection hub.
"""

from .config import BootSettings, HubSettings, load_settings, read_settings_file, CONFIG_PATH_ENV

__all__ = [
    "BootSettings",
    "HubSettings",
    "load_settings",
    "read_settings_file",
    "CONFIG_PATH_ENV",
]
