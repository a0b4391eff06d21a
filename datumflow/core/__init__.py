"""Datumflow Core - Shared utilities and infrastructure.

Import specific names from submodules:
    from datumflow.core.cache import LRUCache
    from datumflow.core.config import ConfigManager
    from datumflow.core import constants
    from datumflow.core import errors
    from datumflow.core.logging import Logger
"""

from datumflow.core import cache, config, constants, errors, logging

__all__ = [
    "cache",
    "config",
    "constants",
    "errors",
    "logging",
]
