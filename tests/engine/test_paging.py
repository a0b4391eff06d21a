#!/usr/bin/env python3
"""Tests for the paged enumeration window."""

import pytest

from datumflow.core.cache import CacheConfig, LRUCache
from datumflow.engine.paging import PagedWindow
from datumflow.engine.resolver import AtomResolver
from datumflow.engine.sequences import AtomSequence
from datumflow.services.memory import InMemoryRepoStore
from datumflow.spec.model import AtomInput


def atom_sequence(count, logger) -> AtomSequence:
    store = InMemoryRepoStore()
    store.create_repo("default", "repo")
    store.put_files("default", "repo", "master", [f"file{i:03d}" for i in range(count)])
    resolver = AtomResolver(store, store, logger=logger)
    return AtomSequence(resolver.resolve(AtomInput(repo="repo", glob="/*")))


class TestPagedWindow:
    """Tests for PagedWindow."""

    def test_starts_empty(self, logger):
        """Test nothing is addressable before the first extension."""
        window = PagedWindow(atom_sequence(5, logger), page_size=2)
        assert window.size_known_so_far() == 0
        assert not window.is_final()
        with pytest.raises(IndexError):
            window.element_at(0)

    def test_grows_one_page_at_a_time(self, logger):
        """Test the known size grows by page_size until the end."""
        window = PagedWindow(atom_sequence(5, logger), page_size=2)
        assert window.extend_one_page() == 2
        assert not window.is_final()
        assert window.extend_one_page() == 4
        assert window.extend_one_page() == 5
        assert window.is_final()
        assert window.pages_loaded == 3

    def test_extend_after_final(self, logger):
        """Test extending a final window changes nothing."""
        window = PagedWindow(atom_sequence(2, logger), page_size=10)
        assert window.extend_one_page() == 2
        assert window.is_final()
        assert window.extend_one_page() == 2

    def test_exact_page_multiple(self, logger):
        """Test a total that's a page multiple is final once fully known."""
        window = PagedWindow(atom_sequence(4, logger), page_size=2)
        window.extend_one_page()
        assert not window.is_final()
        window.extend_one_page()
        assert window.size_known_so_far() == 4
        assert window.is_final()

    def test_elements_match_source(self, logger):
        """Test the window yields the source's datums at the same indexes."""
        source = atom_sequence(7, logger)
        window = PagedWindow(source, page_size=3)
        while not window.is_final():
            window.extend_one_page()
        assert [window.element_at(i) for i in range(7)] == list(source)

    def test_evicted_pages_are_recomputed(self, logger):
        """Test an evicted page yields the same datums again."""
        cache = LRUCache(CacheConfig(max_entries=1))
        window = PagedWindow(atom_sequence(6, logger), page_size=2, cache=cache)
        window.extend_one_page()
        first = window.element_at(0)

        window.extend_one_page()
        window.extend_one_page()
        assert 0 not in cache
        assert window.element_at(0) == first
        assert cache.get_stats()["evictions"] >= 2

    def test_pages_are_cached(self, logger):
        """Test repeated access within a page hits the cache."""
        cache = LRUCache(CacheConfig(max_entries=4))
        window = PagedWindow(atom_sequence(4, logger), page_size=4, cache=cache)
        window.extend_one_page()
        window.element_at(1)
        window.element_at(2)
        assert cache.keys() == [0]
        assert cache.get_stats()["hits"] >= 2

    def test_invalid_page_size(self, logger):
        """Test page_size must be positive."""
        with pytest.raises(ValueError):
            PagedWindow(atom_sequence(1, logger), page_size=0)

    def test_can_reach(self, logger):
        """Test reachability is judged against the whole source, not the loaded pages."""
        window = PagedWindow(atom_sequence(5, logger), page_size=2)
        window.extend_one_page()
        assert window.can_reach(4)
        assert not window.can_reach(5)
        assert not window.can_reach(-1)
        assert window.size_known_so_far() == 2
