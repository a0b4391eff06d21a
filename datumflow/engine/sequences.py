"""
Datumflow Engine: Combinator sequences.

A DatumSequence is an indexable enumeration of datums whose size may only be
partly known. The combinators are adapters composed over child sequences;
cross and union compute each datum from its index instead of materializing
the product, while join and group index their children once up front:

- AtomSequence: one datum per matched entry
- CrossSequence: cartesian product, row-major, last child varying fastest
- UnionSequence: concatenation of the children
- JoinSequence: inner equi-join on join keys
- GroupSequence: one datum per distinct group key

Leaves are fully resolved file sets, so every combinator here is exact: its
size is known up front and extend_one_page() is a no-op. PagedWindow (see
datumflow.engine.paging) is the partial view handed to sessions.

Example:
    >>> seq = build_sequence(CrossInput((a, b)), [file_set_a, file_set_b])
    >>> len(seq)
    6
    >>> seq.element_at(0).aliases
    ['a', 'b']
"""

import bisect
import math
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Iterator, List, Optional, Sequence, Tuple

from datumflow.core.errors import UnsupportedInputKind
from datumflow.engine.datum import Binding, Datum, FileSet
from datumflow.matching.glob import expand_key_template
from datumflow.spec.model import (
    AtomInput,
    CrossInput,
    GroupInput,
    InputNode,
    JoinInput,
    UnionInput,
)


class DatumSequence(ABC):
    """Indexable datum enumeration with a possibly partial size."""

    @abstractmethod
    def size_known_so_far(self) -> int:
        """Number of datums that can be addressed right now."""

    @abstractmethod
    def is_final(self) -> bool:
        """True once size_known_so_far() is the total size."""

    @abstractmethod
    def element_at(self, index: int) -> Datum:
        """
        Datum at an index below size_known_so_far().

        Raises:
            IndexError: If the index is outside the known range
        """

    @abstractmethod
    def extend_one_page(self) -> int:
        """Make more datums addressable; returns the new known size."""


class ExactSequence(DatumSequence):
    """Sequence whose total size is known at construction."""

    @abstractmethod
    def __len__(self) -> int:
        pass

    @abstractmethod
    def _element(self, index: int) -> Datum:
        pass

    def size_known_so_far(self) -> int:
        return len(self)

    def is_final(self) -> bool:
        return True

    def extend_one_page(self) -> int:
        return len(self)

    def element_at(self, index: int) -> Datum:
        if index < 0 or index >= len(self):
            raise IndexError(f"datum index {index} out of range for size {len(self)}")
        return self._element(index)

    def __iter__(self) -> Iterator[Datum]:
        for index in range(len(self)):
            yield self._element(index)


def _decompose(index: int, radices: Sequence[int]) -> List[int]:
    """Mixed-radix digits of index, last radix varying fastest."""
    digits = [0] * len(radices)
    for position in range(len(radices) - 1, -1, -1):
        index, digits[position] = divmod(index, radices[position])
    return digits


def _concat(datums: Sequence[Datum]) -> Datum:
    bindings: Tuple[Binding, ...] = ()
    for datum in datums:
        bindings += datum.bindings
    return Datum(bindings)


# =============================================================================
# Leaves
# =============================================================================


class AtomSequence(ExactSequence):
    """One single-binding datum per entry of a file set."""

    def __init__(self, file_set: FileSet):
        self.file_set = file_set
        atom = file_set.atom
        self._bindings = [
            Binding(
                alias=file_set.alias,
                commit=file_set.commit,
                entries=(entry,),
                join_key=expand_key_template(atom.join_on, entry.captures) if atom.join_on else None,
                group_key=expand_key_template(atom.group_by, entry.captures) if atom.group_by else None,
            )
            for entry in file_set.entries
        ]

    def __len__(self) -> int:
        return len(self._bindings)

    def _element(self, index: int) -> Datum:
        return Datum((self._bindings[index],))


# =============================================================================
# Combinators
# =============================================================================


class CrossSequence(ExactSequence):
    """Cartesian product of the children."""

    def __init__(self, children: Sequence[ExactSequence]):
        self.children = list(children)
        self._radices = [len(child) for child in self.children]
        self._size = math.prod(self._radices) if self.children else 0

    def __len__(self) -> int:
        return self._size

    def _element(self, index: int) -> Datum:
        digits = _decompose(index, self._radices)
        return _concat([child.element_at(d) for child, d in zip(self.children, digits)])


class UnionSequence(ExactSequence):
    """Children concatenated in declaration order."""

    def __init__(self, children: Sequence[ExactSequence]):
        self.children = list(children)
        self._starts: List[int] = []
        total = 0
        for child in self.children:
            self._starts.append(total)
            total += len(child)
        self._size = total

    def __len__(self) -> int:
        return self._size

    def _element(self, index: int) -> Datum:
        position = bisect.bisect_right(self._starts, index) - 1
        return self.children[position].element_at(index - self._starts[position])


def _index_by_key(child: ExactSequence, key_of) -> "OrderedDict[str, List[int]]":
    """Key -> child datum indices, keys in first-appearance order."""
    index: "OrderedDict[str, List[int]]" = OrderedDict()
    for position, datum in enumerate(child):
        key = key_of(datum)
        if key is not None:
            index.setdefault(key, []).append(position)
    return index


class JoinSequence(ExactSequence):
    """Inner equi-join of the children on their join keys.

    Keys are ordered by first appearance in the first child and kept only when
    every child has them. Per key, the children's matches are cross-combined
    with the last child varying fastest, so a key matching m and n datums in
    two children yields m * n datums.

    Construction visits every datum of every child to index the keys, so a
    composite child (a cross, say) is enumerated in full once per mount.
    """

    def __init__(self, children: Sequence[ExactSequence]):
        self.children = list(children)
        indexes = [_index_by_key(child, lambda d: d.join_key) for child in self.children]

        self._keys: List[str] = []
        self._matches: List[List[List[int]]] = []
        self._starts: List[int] = []
        total = 0
        if indexes:
            for key, first in indexes[0].items():
                if not all(key in other for other in indexes[1:]):
                    continue
                matches = [first] + [other[key] for other in indexes[1:]]
                self._keys.append(key)
                self._matches.append(matches)
                self._starts.append(total)
                total += math.prod(len(m) for m in matches)
        self._size = total

    @property
    def keys(self) -> List[str]:
        """Join keys present in every child."""
        return list(self._keys)

    def __len__(self) -> int:
        return self._size

    def _element(self, index: int) -> Datum:
        position = bisect.bisect_right(self._starts, index) - 1
        matches = self._matches[position]
        digits = _decompose(index - self._starts[position], [len(m) for m in matches])
        return _concat(
            [child.element_at(m[d]) for child, m, d in zip(self.children, matches, digits)]
        )


class GroupSequence(ExactSequence):
    """One datum per distinct group key across the children.

    Keys are ordered by first appearance, scanning the children in
    declaration order. Each alias is bound to every distinct entry carrying
    the key, in first-appearance order; children without the key contribute
    nothing to that datum.

    Construction visits every datum of every child to index the keys, so a
    composite child (a cross, say) is enumerated in full once per mount.
    """

    def __init__(self, children: Sequence[ExactSequence]):
        self.children = list(children)
        self._indexes = [_index_by_key(child, lambda d: d.group_key) for child in self.children]

        keys: "OrderedDict[str, None]" = OrderedDict()
        for index in self._indexes:
            for key in index:
                keys.setdefault(key, None)
        self._keys = list(keys)

    @property
    def keys(self) -> List[str]:
        """Distinct group keys in enumeration order."""
        return list(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def _element(self, index: int) -> Datum:
        key = self._keys[index]
        merged: "OrderedDict[str, Binding]" = OrderedDict()

        for child, child_index in zip(self.children, self._indexes):
            for position in child_index.get(key, ()):
                for binding in child.element_at(position).bindings:
                    previous = merged.get(binding.alias)
                    if previous is None:
                        merged[binding.alias] = Binding(
                            alias=binding.alias,
                            commit=binding.commit,
                            entries=binding.entries,
                            join_key=binding.join_key,
                            group_key=key,
                        )
                    else:
                        # A nested child repeats an entry in every datum it appears in
                        fresh = tuple(e for e in binding.entries if e not in previous.entries)
                        if not fresh:
                            continue
                        merged[binding.alias] = Binding(
                            alias=previous.alias,
                            commit=previous.commit,
                            entries=previous.entries + fresh,
                            join_key=previous.join_key,
                            group_key=key,
                        )

        return Datum(tuple(merged.values()))


# =============================================================================
# Construction
# =============================================================================


def build_sequence(node: InputNode, file_sets: Sequence[FileSet]) -> ExactSequence:
    """
    Compose the sequence of an input tree.

    Args:
        node: Root of a validated input tree
        file_sets: Resolved file sets, one per atom in declaration order

    Returns:
        Sequence over the whole tree

    Raises:
        UnsupportedInputKind: If the tree contains a foreign node
        ValueError: If file_sets doesn't match the tree's atoms
    """
    remaining = iter(file_sets)
    sequence = _build(node, remaining)
    if next(remaining, None) is not None:
        raise ValueError("more file sets than atoms in the input tree")
    return sequence


def _build(node: InputNode, file_sets: Iterator[FileSet]) -> ExactSequence:
    if isinstance(node, AtomInput):
        file_set: Optional[FileSet] = next(file_sets, None)
        if file_set is None:
            raise ValueError(f"no file set for input '{node.alias}'")
        return AtomSequence(file_set)

    if isinstance(node, CrossInput):
        return CrossSequence([_build(child, file_sets) for child in node.children])
    if isinstance(node, UnionInput):
        return UnionSequence([_build(child, file_sets) for child in node.children])
    if isinstance(node, JoinInput):
        return JoinSequence([_build(child, file_sets) for child in node.children])
    if isinstance(node, GroupInput):
        return GroupSequence([_build(child, file_sets) for child in node.children])

    raise UnsupportedInputKind(type(node).__name__)

