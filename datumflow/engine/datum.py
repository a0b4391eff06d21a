"""
Datumflow Engine: Datum value types.

- FileSet: the resolved, ordered match entries of one atom (built once per mount)
- Binding: one alias' slice of a datum
- Datum: ordered bindings, one per contributing alias
"""

import hashlib
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from datumflow.matching.glob import MatchEntry
from datumflow.services.interfaces import CommitHandle, FileMap
from datumflow.spec.model import AtomInput


@dataclass(frozen=True)
class FileSet:
    """Resolved entries of one atom at a fixed commit."""

    alias: str
    atom: AtomInput
    commit: CommitHandle
    entries: Tuple[MatchEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class Binding:
    """Entries bound to one alias within a datum.

    Cross, union and join bind exactly one entry per alias; group binds every
    entry of the alias that carries the datum's group key.
    """

    alias: str
    commit: CommitHandle
    entries: Tuple[MatchEntry, ...]
    join_key: Optional[str] = None
    group_key: Optional[str] = None

    @property
    def paths(self) -> List[str]:
        return [entry.path for entry in self.entries]


@dataclass(frozen=True)
class Datum:
    """One unit of work: bindings in declaration order."""

    bindings: Tuple[Binding, ...]

    @property
    def aliases(self) -> List[str]:
        return [binding.alias for binding in self.bindings]

    @property
    def join_key(self) -> Optional[str]:
        """Key of the first binding that has a join key."""
        for binding in self.bindings:
            if binding.join_key is not None:
                return binding.join_key
        return None

    @property
    def group_key(self) -> Optional[str]:
        """Key of the first binding that has a group key."""
        for binding in self.bindings:
            if binding.group_key is not None:
                return binding.group_key
        return None

    @property
    def datum_id(self) -> str:
        """Stable SHA-256 hex digest of the aliases, commits and paths."""
        digest = hashlib.sha256()
        for binding in self.bindings:
            digest.update(binding.alias.encode())
            digest.update(b"\0")
            digest.update(binding.commit.id.encode())
            for path in binding.paths:
                digest.update(b"\0")
                digest.update(path.encode())
            digest.update(b"\n")
        return digest.hexdigest()

    def as_mapping(self) -> Dict[str, Binding]:
        """Alias -> binding."""
        return {binding.alias: binding for binding in self.bindings}

    def file_map(self) -> FileMap:
        """Alias -> (commit, paths), the shape handed to a filesystem view."""
        return {binding.alias: (binding.commit, binding.paths) for binding in self.bindings}
