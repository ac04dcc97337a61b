"""
Set of values compared by equality, accepting unhashable values.

Hashable values live in a regular set. Unhashable ones (lists, dicts)
fall back to a linear scan with ``==``.
"""

from typing import Any, List


class ValueSet:
    """Membership by value equality."""

    def __init__(self):
        self._hashed = set()
        self._unhashable: List[Any] = []

    def add(self, value: Any) -> bool:
        """Add value; return True if it was not present before."""
        try:
            if value in self._hashed:
                return False
            self._hashed.add(value)
            return True
        except TypeError:
            if value in self._unhashable:
                return False
            self._unhashable.append(value)
            return True

    def __contains__(self, value: Any) -> bool:
        try:
            return value in self._hashed
        except TypeError:
            return value in self._unhashable

    def __len__(self) -> int:
        return len(self._hashed) + len(self._unhashable)
