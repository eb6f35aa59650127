"""
Relational backend: configuration, engine groups and the named manager.
"""

from .config import DatabaseConfig, mask_url
from .engine import EngineGroup
from .manager import DatabaseManager, SyncFunc

__all__ = [
    # Configuration
    'DatabaseConfig',
    'mask_url',

    # Engines
    'EngineGroup',

    # Manager
    'DatabaseManager',
    'SyncFunc',
]
