"""
Datumflow Services: In-memory repository store.

InMemoryRepoStore implements both NamingService and FileListingService over
plain dictionaries. It backs the test suite and local experiments where no
versioned file store is available.

Example:
    >>> store = InMemoryRepoStore()
    >>> store.create_repo("default", "images")
    >>> store.put_files("default", "images", "master", ["/a.png", "/b.png"])
    >>> commit = store.head_commit(store.resolve_repo("default", "images"), "master")
    >>> list(store.walk(commit))
    ['/a.png', '/b.png']
"""

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, Optional

from datumflow.core.constants import Defaults
from datumflow.services.interfaces import (
    CommitHandle,
    FileListingService,
    NamingService,
    RepoHandle,
)


@dataclass
class _Repo:
    name: str
    default_branch: str
    branches: Dict[str, str] = field(default_factory=dict)  # branch -> head commit id
    commits: Dict[str, FrozenSet[str]] = field(default_factory=dict)  # commit id -> files


def _normalize(path: str) -> str:
    path = "/" + path.strip().strip("/")
    if path == "/":
        raise ValueError("file path must not be the repository root")
    return path


class InMemoryRepoStore(NamingService, FileListingService):
    """Thread-safe in-memory projects, repos, branches and commits."""

    def __init__(self, default_project: str = Defaults.PROJECT):
        """
        Initialize the store.

        Args:
            default_project: Project created up front
        """
        self._projects: Dict[str, Dict[str, _Repo]] = {default_project: {}}
        self._lock = threading.RLock()

    # =========================================================================
    # Mutation helpers
    # =========================================================================

    def create_project(self, project: str) -> None:
        """Create an empty project.

        Raises:
            ValueError: If the project already exists
        """
        with self._lock:
            if project in self._projects:
                raise ValueError(f"project '{project}' already exists")
            self._projects[project] = {}

    def create_repo(self, project: str, repo: str, default_branch: str = Defaults.BRANCH) -> RepoHandle:
        """Create an empty repository.

        Raises:
            ValueError: If the project is missing or the repo already exists
        """
        with self._lock:
            repos = self._projects.get(project)
            if repos is None:
                raise ValueError(f"project '{project}' does not exist")
            if repo in repos:
                raise ValueError(f"repo '{project}/{repo}' already exists")
            repos[repo] = _Repo(name=repo, default_branch=default_branch)
            return RepoHandle(project=project, name=repo, default_branch=default_branch)

    def put_files(self, project: str, repo: str, branch: str, paths: Iterable[str]) -> CommitHandle:
        """Commit files on top of a branch head, creating the branch if needed.

        Args:
            project: Project name
            repo: Repository name
            branch: Branch to advance
            paths: File paths to add

        Returns:
            The new head commit
        """
        with self._lock:
            state = self._repo(project, repo)
            parent = state.branches.get(branch)
            files = set(state.commits[parent]) if parent else set()
            files.update(_normalize(p) for p in paths)

            commit_id = uuid.uuid4().hex
            state.commits[commit_id] = frozenset(files)
            state.branches[branch] = commit_id
            return CommitHandle(project=project, repo=repo, branch=branch, id=commit_id)

    def put_file(self, project: str, repo: str, branch: str, path: str) -> CommitHandle:
        """Commit a single file on top of a branch head."""
        return self.put_files(project, repo, branch, [path])

    def create_branch(self, project: str, repo: str, branch: str, commit_id: str) -> None:
        """Point a branch at an existing commit.

        Raises:
            ValueError: If the commit doesn't exist
        """
        with self._lock:
            state = self._repo(project, repo)
            if commit_id not in state.commits:
                raise ValueError(f"commit '{commit_id}' not found in '{project}/{repo}'")
            state.branches[branch] = commit_id

    def _repo(self, project: str, repo: str) -> _Repo:
        repos = self._projects.get(project)
        if repos is None or repo not in repos:
            raise ValueError(f"repo '{project}/{repo}' does not exist")
        return repos[repo]

    # =========================================================================
    # NamingService
    # =========================================================================

    def resolve_repo(self, project: str, repo: str) -> Optional[RepoHandle]:
        with self._lock:
            state = self._projects.get(project, {}).get(repo)
            if state is None:
                return None
            return RepoHandle(project=project, name=repo, default_branch=state.default_branch)

    def head_commit(self, repo: RepoHandle, branch: str) -> Optional[CommitHandle]:
        with self._lock:
            state = self._projects.get(repo.project, {}).get(repo.name)
            if state is None or branch not in state.branches:
                return None
            return CommitHandle(
                project=repo.project, repo=repo.name, branch=branch, id=state.branches[branch]
            )

    # =========================================================================
    # FileListingService
    # =========================================================================

    def walk(self, commit: CommitHandle) -> Iterator[str]:
        """Yield files and their parent directories in lexicographic order."""
        with self._lock:
            files = self._repo(commit.project, commit.repo).commits.get(commit.id)
            if files is None:
                raise KeyError(f"commit '{commit}' not found")

        paths = set(files)
        for path in files:
            parts = path.strip("/").split("/")
            for depth in range(1, len(parts)):
                paths.add("/" + "/".join(parts[:depth]))

        yield from sorted(paths)

