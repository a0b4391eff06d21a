"""Datumflow enumeration engine.

- datum: FileSet, Binding and Datum value types
- resolver: atom resolution against the repository services
- sequences: cross/union/join/group adapters over resolved file sets
- paging: the page-by-page window sessions navigate
"""

from .datum import Binding, Datum, FileSet
from .paging import PagedWindow
from .resolver import AtomResolver
from .sequences import (
    AtomSequence,
    CrossSequence,
    DatumSequence,
    ExactSequence,
    GroupSequence,
    JoinSequence,
    UnionSequence,
    build_sequence,
)

__all__ = [
    "Binding",
    "Datum",
    "FileSet",
    "PagedWindow",
    "AtomResolver",
    "AtomSequence",
    "CrossSequence",
    "DatumSequence",
    "ExactSequence",
    "GroupSequence",
    "JoinSequence",
    "UnionSequence",
    "build_sequence",
]
