"""
Buffered operators: deferred but not streaming.

Nothing is pulled until the first element is requested; that first
request drains the whole upstream before anything is returned.
"""

from typing import Any, Callable, Iterator, Optional, Tuple, TypeVar

from lazyseq.algorithms import SortBuffer, SortKey, build_lookup
from lazyseq.collections import Grouping
from lazyseq.errors import ArgumentError
from lazyseq.operators.streaming import OperatorSequence
from lazyseq.sequences import Cursor, OperatorCursor, Sequence, Step, EXHAUSTED
from lazyseq.validation import check_callable, check_optional_callable

T = TypeVar('T')
K = TypeVar('K')

_NO_VALUE = object()


class BufferedCursor(OperatorCursor[T]):
    """Cursor that drains its upstream on the first pull."""

    def _drain(self) -> Iterator[Any]:
        while True:
            step = self._pull()
            if step.exhausted:
                return
            yield step.value


class OrderedSequence(OperatorSequence[T]):
    """
    Stable sort by an ordering of one or more keys.

    The node is immutable: ``then_by`` returns a new node sharing the same
    source with the extra key appended, so an ordering is fixed before any
    of its cursors is pulled.
    """

    def __init__(self, source: Any, keys: Tuple[SortKey, ...]):
        super().__init__(source)
        if not keys:
            raise ArgumentError("keys", "an ordering needs at least one key")
        for sort_key in keys:
            check_callable(sort_key.selector, "key_selector")
            check_optional_callable(sort_key.comparer, "comparer")
        self.keys = tuple(keys)

    def then_by(self, sort_key: SortKey) -> 'OrderedSequence[T]':
        return OrderedSequence(self.source, self.keys + (sort_key,))

    def cursor(self) -> Cursor[T]:
        return OrderedCursor(self.source, self.keys)


class OrderedCursor(BufferedCursor[T]):

    def __init__(self, source: Sequence, keys: Tuple[SortKey, ...]):
        super().__init__(source)
        self._keys = keys
        self._buffer: Optional[SortBuffer] = None
        self._sorted: Optional[Iterator[T]] = None

    def _advance(self) -> Step[T]:
        if self._sorted is None:
            self._buffer = SortBuffer(self._keys)
            for item in self._drain():
                self._buffer.add(item)
            self._sorted = self._buffer.sorted_items()

        value = next(self._sorted, _NO_VALUE)
        if value is _NO_VALUE:
            return EXHAUSTED
        return Step(value)

    def _close(self) -> None:
        sorted_items, self._sorted = self._sorted, None
        buffer, self._buffer = self._buffer, None
        try:
            close = getattr(sorted_items, 'close', None)
            if close is not None:
                close()
            if buffer is not None:
                buffer.close()
        finally:
            super()._close()


class GroupBySequence(OperatorSequence[Grouping[K, Any]]):
    """One Grouping per distinct key, in first-appearance order of the keys."""

    def __init__(self, source: Any,
                 key_selector: Callable[[T], K],
                 element_selector: Optional[Callable[[T], Any]] = None):
        super().__init__(source)
        self.key_selector = check_callable(key_selector, "key_selector")
        self.element_selector = check_optional_callable(element_selector, "element_selector")

    def cursor(self) -> Cursor[Grouping[K, Any]]:
        return GroupByCursor(self.source, self.key_selector, self.element_selector)


class GroupByCursor(BufferedCursor[Grouping[K, Any]]):

    def __init__(self, source: Sequence, key_selector, element_selector):
        super().__init__(source)
        self._key_selector = key_selector
        self._element_selector = element_selector
        self._groupings: Optional[Cursor[Grouping[K, Any]]] = None

    def _advance(self) -> Step[Grouping[K, Any]]:
        if self._groupings is None:
            lookup = build_lookup(self._drain(), self._key_selector, self._element_selector)
            self._groupings = lookup.cursor()

        grouping = next(self._groupings, _NO_VALUE)
        if grouping is _NO_VALUE:
            return EXHAUSTED
        return Step(grouping)

    def _close(self) -> None:
        groupings, self._groupings = self._groupings, None
        try:
            if groupings is not None:
                groupings.close()
        finally:
            super()._close()
