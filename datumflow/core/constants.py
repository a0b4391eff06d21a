"""
Datumflow Core: Constants and Type Definitions

This module provides system-wide constants, error codes, input kinds and the
compiled configuration defaults.
"""
from enum import Enum, IntEnum
from typing import TypeAlias

# Version information
DATUMFLOW_VERSION = "1.0.0"
DATUMFLOW_API_VERSION = 1


# Error codes (0-9 range)
class ErrorCode(IntEnum):
    """Standardized error codes for datumflow operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad input spec, invalid configuration
    NOT_FOUND = 2  # Project, repo or branch doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    CONFLICT = 4  # Operation not allowed in the current state
    DEPENDENCY_ERROR = 5  # Collaborator service failure
    INTERNAL_ERROR = 6  # Bug in datumflow
    TIMEOUT = 7  # Operation timed out
    OUT_OF_RANGE = 8  # Cursor moved past the enumeration
    EMPTY = 9  # Nothing to enumerate


# Type aliases for clarity
Alias: TypeAlias = str
GlobPattern: TypeAlias = str
KeyTemplate: TypeAlias = str
RepoPath: TypeAlias = str


class InputKind(Enum):
    """Node kinds accepted in an input spec."""

    PFS = "pfs"  # Atom: a glob over one repo branch
    CROSS = "cross"
    UNION = "union"
    JOIN = "join"
    GROUP = "group"

    @classmethod
    def from_key(cls, key: str) -> "InputKind":
        """Look up an input kind by its spec key.

        Raises:
            ValueError: If the key is not a supported kind
        """
        return cls(key)


# Root path of a repository tree
ROOT_PATH = "/"


class Defaults:
    """Compiled-in default values."""

    PROJECT = "default"
    BRANCH = "master"
    OUTPUT_REPO = "out"

    # Enumeration paging
    PAGE_SIZE = 500
    PAGE_CACHE_PAGES = 8

    # Parallel atom resolution
    MAX_RESOLVE_WORKERS = 8

    LOG_LEVEL = "INFO"


# Configuration keys
class ConfigKey:
    """Dot-path configuration keys."""

    ROOT = "datumflow"

    PAGE_SIZE = "datumflow.enumeration.page_size"
    PAGE_CACHE_PAGES = "datumflow.enumeration.page_cache_pages"

    MAX_WORKERS = "datumflow.resolution.max_workers"
    DEFAULT_BRANCH = "datumflow.resolution.default_branch"

    DEFAULT_PROJECT = "datumflow.spec.default_project"
    OUTPUT_REPO = "datumflow.spec.output_repo"

    LOG_LEVEL = "datumflow.logging.level"
    LOG_FILE = "datumflow.logging.file"


# Default configuration values
DEFAULT_CONFIG = {
    "datumflow": {
        "enumeration": {
            "page_size": Defaults.PAGE_SIZE,
            "page_cache_pages": Defaults.PAGE_CACHE_PAGES,
        },
        "resolution": {
            "max_workers": Defaults.MAX_RESOLVE_WORKERS,
            "default_branch": Defaults.BRANCH,
        },
        "spec": {
            "default_project": Defaults.PROJECT,
            "output_repo": Defaults.OUTPUT_REPO,
        },
        "logging": {
            "level": Defaults.LOG_LEVEL,
            "file": None,
        },
    }
}
