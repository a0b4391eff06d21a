"""
Datumflow Session: Cursor over the datums of a mounted input spec.

A session mounts one input spec at a time. Mounting validates the spec,
resolves every atom in parallel, composes the combinator sequence and loads
the first page of datums; the cursor then moves with next(), prev() and
seek(). Every operation holds the session lock, so concurrent callers see
whole operations.

Example:
    >>> session = EnumerationSession(store, store)
    >>> session.mount("{'input': {'pfs': {'repo': 'images', 'glob': '/*'}}}")
    CursorState(index=0, known_count=2, count_is_final=True)
    >>> session.next().index
    1
    >>> session.unmount()
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from datumflow.core.cache import CacheConfig, LRUCache
from datumflow.core.config import ConfigManager, get_config_manager
from datumflow.core.constants import ConfigKey, Defaults
from datumflow.core.errors import DatumflowError, EmptyEnumeration, NotMounted, OutOfRange
from datumflow.core.logging import Logger
from datumflow.engine.datum import Datum, FileSet
from datumflow.engine.paging import PagedWindow
from datumflow.engine.resolver import AtomResolver
from datumflow.engine.sequences import build_sequence
from datumflow.services.interfaces import FileListingService, FilesystemView, NamingService
from datumflow.spec.loader import parse_input, parse_spec_text
from datumflow.spec.model import InputNode, iter_atoms
from datumflow.spec.validator import validate

SpecLike = Union[InputNode, Mapping[str, Any], str]


class SessionState(Enum):
    """Lifecycle states of an enumeration session."""

    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"


@dataclass(frozen=True)
class CursorState:
    """Cursor position and how much of the enumeration is known."""

    index: int
    known_count: int
    count_is_final: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "idx": self.index,
            "num_datums": self.known_count,
            "all_datums_received": self.count_is_final,
        }


@dataclass(frozen=True)
class SessionDescription:
    """Mounted spec plus cursor state."""

    spec: InputNode
    cursor: CursorState

    @property
    def index(self) -> int:
        return self.cursor.index

    @property
    def known_count(self) -> int:
        return self.cursor.known_count

    @property
    def count_is_final(self) -> bool:
        return self.cursor.count_is_final

    def to_dict(self) -> Dict[str, Any]:
        result = {"input": self.spec.to_dict()}
        result.update(self.cursor.to_dict())
        return result


@dataclass
class EnumerationState:
    """Everything a mounted session owns."""

    spec: InputNode
    file_sets: List[FileSet]
    window: PagedWindow
    index: int = 0


class EnumerationSession:
    """Single-cursor enumeration over a mounted input spec.

    States: UNMOUNTED -> mount() -> MOUNTED -> unmount() -> UNMOUNTED.
    """

    def __init__(
        self,
        naming: NamingService,
        listing: FileListingService,
        config: Optional[ConfigManager] = None,
        page_size: Optional[int] = None,
        max_workers: Optional[int] = None,
        view: Optional[FilesystemView] = None,
        logger: Optional[Logger] = None,
    ):
        """
        Initialize an unmounted session.

        Args:
            naming: Repository/branch registry
            listing: Versioned file store
            config: Configuration (global configuration if omitted)
            page_size: Overrides datumflow.enumeration.page_size
            max_workers: Overrides datumflow.resolution.max_workers
            view: Receives the current datum's files after every move
            logger: Logger (built from the logging section of config if omitted)

        Raises:
            ConfigError: If a configured value is invalid
        """
        config = config or get_config_manager()
        self.logger = logger or Logger.from_config(config)
        self.view = view

        self.page_size = page_size or config.get_int(ConfigKey.PAGE_SIZE, Defaults.PAGE_SIZE)
        self.page_cache_pages = config.get_int(ConfigKey.PAGE_CACHE_PAGES, Defaults.PAGE_CACHE_PAGES)
        self.default_project = config.get(ConfigKey.DEFAULT_PROJECT, Defaults.PROJECT)
        self.output_repo = config.get(ConfigKey.OUTPUT_REPO, Defaults.OUTPUT_REPO)

        self.resolver = AtomResolver(
            naming,
            listing,
            default_branch=config.get(ConfigKey.DEFAULT_BRANCH, Defaults.BRANCH),
            max_workers=max_workers
            or config.get_int(ConfigKey.MAX_WORKERS, Defaults.MAX_RESOLVE_WORKERS),
            logger=self.logger,
        )

        self._state: Optional[EnumerationState] = None
        self._lock = threading.RLock()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def state(self) -> SessionState:
        with self._lock:
            return SessionState.MOUNTED if self._state is not None else SessionState.UNMOUNTED

    @property
    def is_mounted(self) -> bool:
        return self.state is SessionState.MOUNTED

    def mount(self, spec: SpecLike) -> CursorState:
        """
        Mount an input spec, replacing whatever is mounted.

        Args:
            spec: Input tree, decoded mapping, or YAML/JSON text

        Returns:
            Cursor at index 0 with the first page loaded

        Raises:
            ValidationError: If the spec is malformed
            ResolutionError: If an atom can't be resolved
            EmptyEnumeration: If the spec produces no datums

        On any failure the session is left unmounted.
        """
        with self._lock:
            self._discard()

            try:
                node = self._coerce(spec)
                validate(node, self.output_repo)

                file_sets = self.resolver.resolve_all(list(iter_atoms(node)))
                sequence = build_sequence(node, file_sets)
                if len(sequence) == 0:
                    raise EmptyEnumeration()

                window = PagedWindow(
                    sequence,
                    page_size=self.page_size,
                    cache=LRUCache(CacheConfig(max_entries=self.page_cache_pages)),
                )
                window.extend_one_page()

                self._state = EnumerationState(spec=node, file_sets=file_sets, window=window)
                self._present()
            except DatumflowError as e:
                self._discard()
                self.logger.warning(f"Mount failed: {e.message}", error=type(e).__name__, **e.details)
                raise
            except Exception:
                self._discard()
                raise

            cursor = self._cursor()
            self.logger.info(
                "Mounted datums",
                inputs=len(file_sets),
                num_datums=cursor.known_count,
                final=cursor.count_is_final,
            )
            return cursor

    def unmount(self) -> None:
        """Discard the mounted state. Succeeds when nothing is mounted."""
        with self._lock:
            if self._state is None:
                return
            self._discard()
            self.logger.info("Unmounted datums")

    def _discard(self) -> None:
        if self._state is None:
            return
        self._state = None
        if self.view is not None:
            self.view.clear()

    def _coerce(self, spec: SpecLike) -> InputNode:
        if isinstance(spec, str):
            return parse_spec_text(spec, self.default_project)
        if isinstance(spec, Mapping):
            return parse_input(spec, self.default_project)
        return spec

    # =========================================================================
    # Navigation
    # =========================================================================

    def describe(self) -> SessionDescription:
        """Mounted spec and cursor state.

        Raises:
            NotMounted: If nothing is mounted
        """
        with self._lock:
            state = self._require("describe")
            return SessionDescription(spec=state.spec, cursor=self._cursor())

    def next(self) -> CursorState:
        """Advance the cursor, loading one more page at the known edge.

        Raises:
            OutOfRange: At the last datum; the cursor doesn't move
            NotMounted: If nothing is mounted
        """
        with self._lock:
            state = self._require("next")
            target = state.index + 1
            self._extend_to(state, target)
            return self._move(state, target)

    def prev(self) -> CursorState:
        """Move the cursor back by one.

        Raises:
            OutOfRange: At index 0; the cursor doesn't move
            NotMounted: If nothing is mounted
        """
        with self._lock:
            state = self._require("prev")
            return self._move(state, state.index - 1)

    def seek(self, index: int) -> CursorState:
        """Move the cursor to an absolute index, loading pages as needed.

        Raises:
            OutOfRange: If no datum exists at index; the cursor doesn't move
            NotMounted: If nothing is mounted
        """
        with self._lock:
            state = self._require("seek")
            if not state.window.can_reach(index):
                raise self._out_of_range(state, index)
            self._extend_to(state, index)
            return self._move(state, index)

    def current_datum(self) -> Datum:
        """Datum under the cursor.

        Raises:
            NotMounted: If nothing is mounted
        """
        with self._lock:
            state = self._require("read the current datum")
            return state.window.element_at(state.index)

    def _require(self, operation: str) -> EnumerationState:
        if self._state is None:
            raise NotMounted(operation)
        return self._state

    def _extend_to(self, state: EnumerationState, index: int) -> None:
        window = state.window
        while index >= window.size_known_so_far() and not window.is_final():
            known = window.extend_one_page()
            self.logger.debug("Loaded page", known=known, final=window.is_final())

    def _move(self, state: EnumerationState, index: int) -> CursorState:
        if index < 0 or index >= state.window.size_known_so_far():
            raise self._out_of_range(state, index)

        state.index = index
        self._present()
        self.logger.debug("Cursor moved", index=index)
        return self._cursor()

    def _out_of_range(self, state: EnumerationState, index: int) -> OutOfRange:
        window = state.window
        self.logger.debug("Cursor out of range", index=index, known=window.size_known_so_far())
        return OutOfRange(index, window.size_known_so_far(), window.is_final())

    def _cursor(self) -> CursorState:
        state = self._state
        return CursorState(
            index=state.index,
            known_count=state.window.size_known_so_far(),
            count_is_final=state.window.is_final(),
        )

    def _present(self) -> None:
        if self.view is None:
            return
        state = self._state
        self.view.present(state.window.element_at(state.index).file_map())
