"""
Datumflow Services: Collaborator interfaces.

The engine consumes three external collaborators:
- NamingService: resolves project/repo names and branch heads
- FileListingService: walks the file tree of a commit
- FilesystemView: presents a datum's file bindings to a worker

Responses are treated as read-only snapshots as of the call. Branch heads may
move between calls for different atoms; the engine does not ask for
cross-atom consistency.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class RepoHandle:
    """A resolved repository."""

    project: str
    name: str
    default_branch: Optional[str] = None


@dataclass(frozen=True)
class CommitHandle:
    """A concrete commit: the head of a branch at resolution time."""

    project: str
    repo: str
    branch: str
    id: str

    def __str__(self) -> str:
        return f"{self.project}/{self.repo}@{self.branch}={self.id}"


# alias -> (commit, paths) handed to the filesystem view
FileMap = Dict[str, Tuple[CommitHandle, List[str]]]


class NamingService(ABC):
    """Repository/project registry."""

    @abstractmethod
    def resolve_repo(self, project: str, repo: str) -> Optional[RepoHandle]:
        """
        Resolve a repository by name.

        Returns:
            RepoHandle, or None if the project or repo doesn't exist
        """

    @abstractmethod
    def head_commit(self, repo: RepoHandle, branch: str) -> Optional[CommitHandle]:
        """
        Resolve the head commit of a branch.

        Returns:
            CommitHandle, or None if the branch doesn't exist
        """


class FileListingService(ABC):
    """Versioned file store."""

    @abstractmethod
    def walk(self, commit: CommitHandle) -> Iterable[str]:
        """
        Walk every path of a commit's tree.

        Yields absolute paths ("/dir", "/dir/file1", ...) for files and
        directories, in a stable order.
        """


class FilesystemView(ABC):
    """Presents the current datum to a worker as mountable paths."""

    @abstractmethod
    def present(self, files: FileMap) -> None:
        """Replace whatever is presented with the given bindings."""

    @abstractmethod
    def clear(self) -> None:
        """Remove everything that is presented."""
