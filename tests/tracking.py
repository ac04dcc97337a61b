"""
Instrumented sources shared by the tests.
"""

from lazyseq.sequences import Cursor, Sequence, Step, EXHAUSTED


class TrackedSource(Sequence):
    """
    Sequence that counts cursor opens, closes and pulled elements.

    With items=None it counts 0, 1, 2, ... forever.
    """

    def __init__(self, items=None):
        self.items = items
        self.opened = 0
        self.closed = 0
        self.pulled = 0

    def cursor(self):
        return _TrackedCursor(self)


class _TrackedCursor(Cursor):

    def __init__(self, source):
        super().__init__()
        self._source = source
        self._position = 0

    def _open(self):
        self._source.opened += 1

    def _advance(self):
        items = self._source.items
        if items is not None and self._position >= len(items):
            return EXHAUSTED
        value = self._position if items is None else items[self._position]
        self._position += 1
        self._source.pulled += 1
        return Step(value)

    def _close(self):
        self._source.closed += 1


class CallCounter:
    """Wraps a function and counts its calls."""

    def __init__(self, func):
        self.func = func
        self.calls = 0

    def __call__(self, *args):
        self.calls += 1
        return self.func(*args)
