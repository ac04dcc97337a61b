"""
First-appearance grouping.

Groups are emitted in the order their key was first produced, never
sorted and never in hash order.
"""

from typing import Any, Callable, Iterable, Optional, TypeVar

from lazyseq.collections import Lookup

T = TypeVar('T')
K = TypeVar('K')


def build_lookup(
    data: Iterable[T],
    key_func: Callable[[T], K],
    element_func: Optional[Callable[[T], Any]] = None
) -> Lookup:
    """
    Group data by key.

    Args:
        data: Iterable of items to group
        key_func: Function to extract group key
        element_func: Optional projection applied to each grouped item

    Returns:
        Lookup with one grouping per distinct key
    """
    lookup = Lookup()
    for item in data:
        key = key_func(item)
        lookup.add(key, item if element_func is None else element_func(item))
    return lookup
