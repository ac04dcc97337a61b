"""Containers used by grouping and deduplication."""

from lazyseq.collections.grouping import Grouping, Lookup
from lazyseq.collections.value_set import ValueSet

__all__ = [
    "Grouping",
    "Lookup",
    "ValueSet",
]
