"""
MongoDB backend: configuration and the named client manager.
"""

from .config import MongoConfig, mask_uri, uri_options
from .client import MongoManager

__all__ = [
    "MongoConfig",
    "mask_uri",
    "uri_options",
    "MongoManager",
]
