"""
Datumflow Engine: Paged enumeration window.

PagedWindow is the partial view of a sequence that a session navigates. The
addressable range grows one page at a time; computed pages are held in an
LRU cache and recomputed after eviction. Pages are aligned to page_size, so a
recomputed page holds exactly the datums it held before.
"""

from typing import Optional, Tuple

from datumflow.core.cache import CacheConfig, LRUCache
from datumflow.core.constants import Defaults
from datumflow.engine.datum import Datum
from datumflow.engine.sequences import DatumSequence


class PagedWindow(DatumSequence):
    """Window over a sequence that becomes addressable page by page."""

    def __init__(
        self,
        source: DatumSequence,
        page_size: int = Defaults.PAGE_SIZE,
        cache: Optional[LRUCache] = None,
    ):
        """
        Initialize the window with nothing addressable.

        Args:
            source: Sequence being paged
            page_size: Datums made addressable per extension
            cache: Page cache (a small private cache if omitted)

        Raises:
            ValueError: If page_size is not positive
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive: {page_size}")
        self.source = source
        self.page_size = page_size
        self.cache = cache if cache is not None else LRUCache(CacheConfig(max_entries=Defaults.PAGE_CACHE_PAGES))
        self._known = 0

    def size_known_so_far(self) -> int:
        return self._known

    def is_final(self) -> bool:
        return self.source.is_final() and self._known >= self.source.size_known_so_far()

    def can_reach(self, index: int) -> bool:
        """False when index is negative or past the end of a finished source."""
        if index < 0:
            return False
        return not self.source.is_final() or index < self.source.size_known_so_far()

    @property
    def pages_loaded(self) -> int:
        return -(-self._known // self.page_size)

    def extend_one_page(self) -> int:
        """Make the next page addressable and compute it.

        Returns:
            New known size (unchanged once final)
        """
        if self.is_final():
            return self._known

        target = self._known + self.page_size
        while self.source.size_known_so_far() < target and not self.source.is_final():
            self.source.extend_one_page()

        self._known = min(target, self.source.size_known_so_far())
        if self._known:
            self._page((self._known - 1) // self.page_size)
        return self._known

    def element_at(self, index: int) -> Datum:
        if index < 0 or index >= self._known:
            raise IndexError(f"datum index {index} out of range for {self._known} known datum(s)")
        page = self._page(index // self.page_size)
        return page[index % self.page_size]

    def _page(self, number: int) -> Tuple[Datum, ...]:
        page = self.cache.get(number)
        if page is None:
            start = number * self.page_size
            stop = min(start + self.page_size, self._known)
            page = tuple(self.source.element_at(i) for i in range(start, stop))
            self.cache.set(number, page)
        return page
