"""Datumflow - datum specification and enumeration engine.

Declarative input specs (cross/union/join/group over file globs in
branch-versioned repositories) are validated, resolved against a repository
service, combined, and exposed as a paged, cursor-addressable enumeration of
datums.

Example:
    >>> from datumflow import EnumerationSession, InMemoryRepoStore
    >>> store = InMemoryRepoStore()
    >>> store.create_repo("default", "images")
    >>> store.put_files("default", "images", "master", ["/a.png", "/b.png"])
    >>> session = EnumerationSession(store, store)
    >>> session.mount({"pfs": {"repo": "images", "glob": "/*"}}).to_dict()
    {'idx': 0, 'num_datums': 2, 'all_datums_received': True}
"""

from datumflow.core.constants import DATUMFLOW_VERSION
from datumflow.core.errors import DatumflowError
from datumflow.engine.datum import Binding, Datum, FileSet
from datumflow.services.interfaces import FilesystemView, FileListingService, NamingService
from datumflow.services.memory import InMemoryRepoStore
from datumflow.session import CursorState, EnumerationSession, SessionDescription, SessionState
from datumflow.spec import (
    AtomInput,
    CrossInput,
    GroupInput,
    JoinInput,
    UnionInput,
    parse_input,
    parse_spec_text,
    validate,
)

__version__ = DATUMFLOW_VERSION

__all__ = [
    "__version__",
    "AtomInput",
    "Binding",
    "CrossInput",
    "CursorState",
    "Datum",
    "DatumflowError",
    "EnumerationSession",
    "FileListingService",
    "FileSet",
    "FilesystemView",
    "GroupInput",
    "InMemoryRepoStore",
    "JoinInput",
    "NamingService",
    "SessionDescription",
    "SessionState",
    "UnionInput",
    "parse_input",
    "parse_spec_text",
    "validate",
]
