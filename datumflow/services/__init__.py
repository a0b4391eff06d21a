"""Datumflow collaborator services.

- NamingService / FileListingService / FilesystemView: interfaces consumed by
  the engine
- InMemoryRepoStore: dictionary-backed naming and listing implementation
"""

from .interfaces import (
    CommitHandle,
    FileListingService,
    FileMap,
    FilesystemView,
    NamingService,
    RepoHandle,
)
from .memory import InMemoryRepoStore

__all__ = [
    "CommitHandle",
    "FileListingService",
    "FileMap",
    "FilesystemView",
    "NamingService",
    "RepoHandle",
    "InMemoryRepoStore",
]
