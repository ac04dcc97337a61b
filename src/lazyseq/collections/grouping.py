"""
Key-preserving grouping containers.

A Grouping pairs a key with the elements that produced it. A Lookup is
the ordered collection of groupings built by the grouping operator:
groupings appear in the order their key was first seen, and keys match
by value equality.
"""

from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from lazyseq.sequences import Cursor, IteratorCursor, Sequence

K = TypeVar('K')
T = TypeVar('T')


class Grouping(Sequence[T], Generic[K, T]):
    """A key and a restartable view over its elements."""

    def __init__(self, key: K, elements: Optional[List[T]] = None):
        self.key = key
        self._elements: List[T] = elements if elements is not None else []

    def cursor(self) -> Cursor[T]:
        return IteratorCursor(lambda: iter(self._elements))

    def known_size(self) -> int:
        return len(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __repr__(self) -> str:
        return f"Grouping(key={self.key!r}, size={len(self._elements)})"


class Lookup(Sequence[Grouping[K, T]]):
    """
    Groupings in first-appearance order of their keys.

    Indexing with a key that has no elements returns an empty Grouping
    instead of raising.
    """

    def __init__(self):
        self._groupings: List[Grouping[K, T]] = []
        self._index: Dict[Any, Grouping[K, T]] = {}
        self._unhashable: List[Tuple[Any, Grouping[K, T]]] = []

    def _find(self, key: K) -> Optional[Grouping[K, T]]:
        try:
            return self._index.get(key)
        except TypeError:
            for existing, grouping in self._unhashable:
                if existing == key:
                    return grouping
            return None

    def add(self, key: K, element: T) -> None:
        """Append element to the grouping of key, creating it on first sight."""
        grouping = self._find(key)
        if grouping is None:
            grouping = Grouping(key)
            try:
                self._index[key] = grouping
            except TypeError:
                self._unhashable.append((key, grouping))
            self._groupings.append(grouping)
        grouping._elements.append(element)

    def __getitem__(self, key: K) -> Grouping[K, T]:
        grouping = self._find(key)
        return grouping if grouping is not None else Grouping(key)

    def __contains__(self, key: K) -> bool:
        return self._find(key) is not None

    def __len__(self) -> int:
        return len(self._groupings)

    def keys(self) -> List[K]:
        return [grouping.key for grouping in self._groupings]

    def known_size(self) -> int:
        return len(self._groupings)

    def cursor(self) -> Cursor[Grouping[K, T]]:
        return IteratorCursor(lambda: iter(self._groupings))
