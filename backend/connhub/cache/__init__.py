"""
Valkey backend: configuration and the named client manager.
"""

from .config import ValkeyConfig, ValkeyMode, parse_address
from .client import ValkeyManager, ValkeyHandle

__all__ = [
    # Configuration
    "ValkeyConfig",
    "ValkeyMode",
    "parse_address",

    # Client
    "ValkeyManager",
    "ValkeyHandle",
]
