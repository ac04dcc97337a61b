"""Sorting and grouping algorithms behind the buffered operators."""

from lazyseq.algorithms.ordering import SortKey, CompositeKey, composite_key_function, sort_in_memory
from lazyseq.algorithms.external_sort import SortBuffer, SortRun, external_sort
from lazyseq.algorithms.grouping import build_lookup

__all__ = [
    "SortKey",
    "CompositeKey",
    "composite_key_function",
    "sort_in_memory",
    "SortBuffer",
    "SortRun",
    "external_sort",
    "build_lookup",
]
