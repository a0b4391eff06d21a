"""
Datumflow Engine: Atom resolution.

Resolving an atom pins its branch to the current head commit and matches its
glob against that commit's tree. Atoms are independent, so a mount resolves
all of them in parallel and fails fast on the first error.

Example:
    >>> resolver = AtomResolver(store, store)
    >>> file_set = resolver.resolve(AtomInput(repo="images", glob="/*"))
    >>> [entry.path for entry in file_set.entries]
    ['/a.png', '/b.png']
"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import List, Optional, Sequence

from datumflow.core.constants import Defaults
from datumflow.core.errors import (
    BranchNotFound,
    DatumflowError,
    RepoNotFound,
    ServiceError,
)
from datumflow.core.logging import Logger, get_logger
from datumflow.engine.datum import FileSet
from datumflow.matching.glob import GlobMatcher
from datumflow.services.interfaces import FileListingService, NamingService
from datumflow.spec.model import AtomInput


class AtomResolver:
    """Resolves atoms against the naming and file-listing services."""

    def __init__(
        self,
        naming: NamingService,
        listing: FileListingService,
        default_branch: str = Defaults.BRANCH,
        max_workers: int = Defaults.MAX_RESOLVE_WORKERS,
        logger: Optional[Logger] = None,
    ):
        """
        Initialize the resolver.

        Args:
            naming: Repository/branch registry
            listing: Versioned file store
            default_branch: Branch used when neither the atom nor the repo names one
            max_workers: Thread pool size for resolve_all()
            logger: Logger (global logger if omitted)
        """
        self.naming = naming
        self.matcher = GlobMatcher(listing)
        self.default_branch = default_branch
        self.max_workers = max(1, max_workers)
        self.logger = logger or get_logger()

    def resolve(self, atom: AtomInput) -> FileSet:
        """
        Resolve one atom to its file set.

        An atom whose glob matches nothing resolves to an empty file set.

        Raises:
            RepoNotFound: If the project or repo doesn't exist
            BranchNotFound: If the branch doesn't exist
            ServiceError: If a collaborator service fails
        """
        alias = atom.alias
        try:
            repo = self.naming.resolve_repo(atom.project, atom.repo)
            if repo is None:
                raise RepoNotFound(atom.project, atom.repo, alias=alias)

            branch = atom.branch or repo.default_branch or self.default_branch
            commit = self.naming.head_commit(repo, branch)
            if commit is None:
                raise BranchNotFound(atom.project, atom.repo, branch, alias=alias)

            entries = self.matcher.match(commit, atom.glob)
        except DatumflowError:
            raise
        except Exception as e:
            raise ServiceError(alias, e) from e

        self.logger.debug(
            "Resolved input", alias=alias, commit=commit.id, entries=len(entries)
        )
        return FileSet(alias=alias, atom=atom, commit=commit, entries=tuple(entries))

    def resolve_all(self, atoms: Sequence[AtomInput]) -> List[FileSet]:
        """
        Resolve atoms in parallel.

        Args:
            atoms: Atoms in declaration order

        Returns:
            File sets in the same order as atoms

        Raises:
            ResolutionError: The first failure; pending resolutions are cancelled
        """
        if not atoms:
            return []
        if len(atoms) == 1:
            return [self.resolve(atoms[0])]

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(atoms)),
            thread_name_prefix="datumflow-resolve",
        )
        try:
            futures = [executor.submit(self.resolve, atom) for atom in atoms]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)

            # Report the earliest declared failure among those finished
            for future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()

            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
