"""
Streaming operators.

Each node wraps one upstream sequence and yields output as it pulls,
holding O(1) extra state (Distinct excepted, see DistinctSequence).
Arguments are validated when the node is built; functions only run
while a consumer pulls.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar

from lazyseq.config import config
from lazyseq.collections import ValueSet
from lazyseq.sequences import Cursor, OperatorCursor, Sequence, Step, EXHAUSTED, as_sequence, cursor_of
from lazyseq.validation import check_callable, check_count, check_optional_callable

T = TypeVar('T')
U = TypeVar('U')

logger = logging.getLogger(__name__)


class OperatorSequence(Sequence[T]):
    """Base class for operator nodes owning a single upstream sequence."""

    def __init__(self, source: Any):
        self.source: Sequence = as_sequence(source)

    @property
    def restartable(self) -> bool:
        return self.source.restartable


class WhereSequence(OperatorSequence[T]):
    """Keep only elements matching every predicate."""

    def __init__(self, source: Any, predicate: Callable[[T], bool]):
        super().__init__(source)
        self.predicates: Tuple[Callable[[T], bool], ...] = (check_callable(predicate, "predicate"),)

    def fuse(self, predicate: Callable[[T], bool]) -> 'WhereSequence[T]':
        """Equivalent of filtering this node's output again by predicate."""
        fused = WhereSequence(self.source, predicate)
        fused.predicates = self.predicates + fused.predicates
        return fused

    def cursor(self) -> Cursor[T]:
        return WhereCursor(self.source, self.predicates)


class WhereCursor(OperatorCursor[T]):

    def __init__(self, source: Sequence, predicates: Tuple[Callable[[T], bool], ...]):
        super().__init__(source)
        self._predicates = predicates

    def _advance(self) -> Step[T]:
        while True:
            step = self._pull()
            if step.exhausted:
                return step
            # all() stops at the first failing predicate, like chained filters
            if all(predicate(step.value) for predicate in self._predicates):
                return step


class SelectSequence(OperatorSequence[U]):
    """Map each element through a selector, optionally given its index."""

    def __init__(self, source: Any, selector: Callable[..., U], with_index: bool = False):
        super().__init__(source)
        self.selector = check_callable(selector, "selector")
        self.with_index = with_index

    def cursor(self) -> Cursor[U]:
        return SelectCursor(self.source, self.selector, self.with_index)


class SelectCursor(OperatorCursor[U]):

    def __init__(self, source: Sequence, selector: Callable[..., U], with_index: bool):
        super().__init__(source)
        self._selector = selector
        self._with_index = with_index
        self._index = 0

    def _advance(self) -> Step[U]:
        step = self._pull()
        if step.exhausted:
            return step
        if self._with_index:
            value = self._selector(step.value, self._index)
            self._index += 1
            return Step(value)
        return Step(self._selector(step.value))


class SelectManySequence(OperatorSequence[U]):
    """Flatten the sub-sequence selected for each element."""

    def __init__(self, source: Any,
                 selector: Callable[[T], Iterable[Any]],
                 result_selector: Optional[Callable[[T, Any], U]] = None):
        super().__init__(source)
        self.selector = check_callable(selector, "selector")
        self.result_selector = check_optional_callable(result_selector, "result_selector")

    def cursor(self) -> Cursor[U]:
        return SelectManyCursor(self.source, self.selector, self.result_selector)


class SelectManyCursor(OperatorCursor[U]):

    def __init__(self, source: Sequence, selector, result_selector):
        super().__init__(source)
        self._selector = selector
        self._result_selector = result_selector
        self._outer: Any = None
        self._inner: Optional[Cursor] = None

    def _advance(self) -> Step[U]:
        while True:
            if self._inner is not None:
                step = self._inner.advance()
                if not step.exhausted:
                    if self._result_selector is None:
                        return step
                    return Step(self._result_selector(self._outer, step.value))
                self._inner = None

            outer = self._pull()
            if outer.exhausted:
                return outer
            self._outer = outer.value
            self._inner = cursor_of(self._selector(outer.value))

    def _close(self) -> None:
        inner, self._inner = self._inner, None
        try:
            if inner is not None:
                inner.close()
        finally:
            super()._close()


class SkipSequence(OperatorSequence[T]):
    """Discard the first count elements."""

    def __init__(self, source: Any, count: int):
        super().__init__(source)
        self.count = check_count(count, "count")

    def cursor(self) -> Cursor[T]:
        return SkipCursor(self.source, self.count)


class SkipCursor(OperatorCursor[T]):

    def __init__(self, source: Sequence, count: int):
        super().__init__(source)
        self._to_skip = count

    def _advance(self) -> Step[T]:
        while self._to_skip > 0:
            step = self._pull()
            if step.exhausted:
                return step
            self._to_skip -= 1
        return self._pull()


class TakeSequence(OperatorSequence[T]):
    """Yield at most count elements, then stop pulling upstream."""

    def __init__(self, source: Any, count: int):
        super().__init__(source)
        self.count = check_count(count, "count")

    def cursor(self) -> Cursor[T]:
        return TakeCursor(self.source, self.count)


class TakeCursor(OperatorCursor[T]):

    def __init__(self, source: Sequence, count: int):
        super().__init__(source)
        self._remaining = count

    def _advance(self) -> Step[T]:
        if self._remaining <= 0:
            return EXHAUSTED
        step = self._pull()
        if step.exhausted:
            return step
        self._remaining -= 1
        if self._remaining == 0:
            # Quota met: release upstream now rather than on the next pull
            self._close_upstream()
        return step


class TakeWhileSequence(OperatorSequence[T]):
    """Yield elements while the predicate holds."""

    def __init__(self, source: Any, predicate: Callable[[T], bool]):
        super().__init__(source)
        self.predicate = check_callable(predicate, "predicate")

    def cursor(self) -> Cursor[T]:
        return TakeWhileCursor(self.source, self.predicate)


class TakeWhileCursor(OperatorCursor[T]):

    def __init__(self, source: Sequence, predicate: Callable[[T], bool]):
        super().__init__(source)
        self._predicate = predicate

    def _advance(self) -> Step[T]:
        step = self._pull()
        if step.exhausted or self._predicate(step.value):
            return step
        return EXHAUSTED


class SkipWhileSequence(OperatorSequence[T]):
    """Drop elements while the predicate holds, then yield the rest."""

    def __init__(self, source: Any, predicate: Callable[[T], bool]):
        super().__init__(source)
        self.predicate = check_callable(predicate, "predicate")

    def cursor(self) -> Cursor[T]:
        return SkipWhileCursor(self.source, self.predicate)


class SkipWhileCursor(OperatorCursor[T]):

    def __init__(self, source: Sequence, predicate: Callable[[T], bool]):
        super().__init__(source)
        self._predicate = predicate
        self._dropping = True

    def _advance(self) -> Step[T]:
        while self._dropping:
            step = self._pull()
            if step.exhausted or not self._predicate(step.value):
                self._dropping = False
                return step
        return self._pull()


class DistinctSequence(OperatorSequence[T]):
    """
    Yield each element the first time its key is seen.

    Every distinct key is remembered for the whole pass, so memory grows
    with the number of distinct keys. Not suitable for infinite sources
    with unbounded cardinality.
    """

    def __init__(self, source: Any, key: Optional[Callable[[T], Any]] = None):
        super().__init__(source)
        self.key = check_optional_callable(key, "key")

    def cursor(self) -> Cursor[T]:
        return DistinctCursor(self.source, self.key)


class DistinctCursor(OperatorCursor[T]):

    def __init__(self, source: Sequence, key: Optional[Callable[[T], Any]]):
        super().__init__(source)
        self._key = key
        self._seen = ValueSet()
        self._warned = False

    def _advance(self) -> Step[T]:
        while True:
            step = self._pull()
            if step.exhausted:
                return step
            key = step.value if self._key is None else self._key(step.value)
            if self._seen.add(key):
                self._check_growth()
                return step

    def _check_growth(self) -> None:
        if not self._warned and len(self._seen) > config.distinct_warning_threshold:
            self._warned = True
            logger.warning("distinct() has seen %d distinct keys; memory grows with every new key",
                           len(self._seen))

    def _close(self) -> None:
        self._seen = ValueSet()
        super()._close()


class ChunkSequence(OperatorSequence[List[T]]):
    """Group consecutive elements into lists of size elements; the last may be shorter."""

    def __init__(self, source: Any, size: int):
        super().__init__(source)
        self.size = check_count(size, "size", minimum=1)

    def cursor(self) -> Cursor[List[T]]:
        return ChunkCursor(self.source, self.size)


class ChunkCursor(OperatorCursor[List[T]]):

    def __init__(self, source: Sequence, size: int):
        super().__init__(source)
        self._size = size

    def _advance(self) -> Step[List[T]]:
        chunk = []
        while len(chunk) < self._size:
            step = self._pull()
            if step.exhausted:
                break
            chunk.append(step.value)
        if not chunk:
            return EXHAUSTED
        return Step(chunk)


class ConcatSequence(OperatorSequence[T]):
    """All elements of source followed by all elements of other."""

    def __init__(self, source: Any, other: Any):
        super().__init__(source)
        self.other: Sequence = as_sequence(other)

    @property
    def restartable(self) -> bool:
        return self.source.restartable and self.other.restartable

    def known_size(self) -> Optional[int]:
        first, second = self.source.known_size(), self.other.known_size()
        if first is None or second is None:
            return None
        return first + second

    def cursor(self) -> Cursor[T]:
        return ConcatCursor(self.source, self.other)


class ConcatCursor(OperatorCursor[T]):

    def __init__(self, source: Sequence, other: Sequence):
        super().__init__(source)
        self._other = other
        self._second: Optional[Cursor[T]] = None

    def _advance(self) -> Step[T]:
        if self._second is None:
            step = self._pull()
            if not step.exhausted:
                return step
            self._second = self._other.cursor()
        return self._second.advance()

    def _close(self) -> None:
        second, self._second = self._second, None
        try:
            if second is not None:
                second.close()
        finally:
            super()._close()
