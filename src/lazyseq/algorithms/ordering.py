"""
Stable multi-key ordering.

An ordering is a list of SortKey entries applied in the order they were
appended: the first is the primary key, each later one only breaks ties
left by the keys before it. Every key carries its own direction and an
optional three-way comparer.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class SortKey:
    """One level of an ordering."""
    selector: Callable[[Any], Any]
    descending: bool = False
    comparer: Optional[Callable[[Any, Any], int]] = None

    def key_function(self) -> Callable[[Any], Any]:
        """Key function usable with ``list.sort``."""
        if self.comparer is None:
            return self.selector
        wrap = cmp_to_key(self.comparer)
        selector = self.selector
        return lambda item: wrap(selector(item))


def sort_in_memory(items: List[T], keys: Sequence[SortKey]) -> List[T]:
    """
    Sort items in place by every key, primary key first.

    Python's sort is stable, also with ``reverse=True``, so sorting by the
    last key first and the primary key last yields the composed order
    with ties kept in their original relative order.
    """
    for sort_key in reversed(keys):
        items.sort(key=sort_key.key_function(), reverse=sort_key.descending)
    return items


class CompositeKey:
    """Comparable tuple of key values honouring each key's direction."""

    __slots__ = ('values', 'directions')

    def __init__(self, values: Tuple[Any, ...], directions: Tuple[bool, ...]):
        self.values = values
        self.directions = directions

    def __lt__(self, other: 'CompositeKey') -> bool:
        for mine, theirs, descending in zip(self.values, other.values, self.directions):
            if mine < theirs:
                return not descending
            if theirs < mine:
                return descending
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompositeKey):
            return NotImplemented
        return not (self < other or other < self)

    __hash__ = None


def composite_key_function(keys: Sequence[SortKey]) -> Callable[[Any], CompositeKey]:
    """Single key function equivalent to applying every key in order."""
    functions = [sort_key.key_function() for sort_key in keys]
    directions = tuple(sort_key.descending for sort_key in keys)

    def composite(item: Any) -> CompositeKey:
        return CompositeKey(tuple(function(item) for function in functions), directions)

    return composite
