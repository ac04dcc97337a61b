"""
Lazy, composable queries.

A Query is the outermost node of a pipeline. Operator methods validate
their arguments immediately and return a new Query; nothing is pulled
from the source until a terminal method runs or a caller iterates.
"""

import itertools
import logging
from operator import itemgetter
from pathlib import Path
from typing import (
    Any, Callable, Dict, Iterable, Iterator, List, Optional, Set,
    Tuple, TypeVar, Union
)

from lazyseq import terminal
from lazyseq.algorithms import SortKey
from lazyseq.collections import Grouping, Lookup
from lazyseq.config import config
from lazyseq.errors import ArgumentError, InvalidOperationError
from lazyseq.operators import (
    WhereSequence, SelectSequence, SelectManySequence, SkipSequence,
    TakeSequence, TakeWhileSequence, SkipWhileSequence, DistinctSequence,
    ChunkSequence, ConcatSequence, OrderedSequence, GroupBySequence,
)
from lazyseq.provider import (
    KeyValueSelector, Negation, Operation, ProviderSequence, QueryProvider,
    ORDERING_OPERATIONS,
)
from lazyseq.sequences import Cursor, FactorySequence, FileSequence, Sequence, as_sequence
from lazyseq.validation import (
    check_callable, check_count, check_integer, check_iterable, check_not_none, check_number,
    check_optional_callable,
)

T = TypeVar('T')
U = TypeVar('U')
K = TypeVar('K')

logger = logging.getLogger(__name__)


class Query(Sequence[T]):
    """
    A lazy query over a sequence of elements.

    Args:
        source: A Sequence, any iterable, or a callable returning an
            iterator (called once per pass).
    """

    def __init__(self, source: Union[Sequence[T], Iterable[T], Callable[[], Iterator[T]]]):
        self._node: Sequence[T] = as_sequence(source)

    # Sequence contract

    def cursor(self) -> Cursor[T]:
        return self._node.cursor()

    @property
    def restartable(self) -> bool:
        return self._node.restartable

    def known_size(self) -> Optional[int]:
        return self._node.known_size()

    # Composition hooks

    def _compose(self, operation: Operation, build: Callable[[], Sequence]) -> 'Query':
        """Return the query for operation; ``build`` creates the in-process node."""
        return _wrap(build())

    def _filtered(self, predicate: Optional[Callable[[T], bool]]) -> Tuple[Sequence, Optional[Callable]]:
        """Source and predicate a predicate-taking terminal method should use."""
        return self, predicate

    def _projected(self, selector: Optional[Callable[[T], Any]]) -> Tuple[Sequence, Optional[Callable]]:
        """Source and selector a selector-taking terminal method should use."""
        return self, selector

    # Streaming operators

    def where(self, predicate: Callable[[T], bool]) -> 'Query[T]':
        """Keep only elements matching predicate."""
        check_callable(predicate, "predicate")

        def build():
            if config.fuse_filters and isinstance(self._node, WhereSequence):
                return self._node.fuse(predicate)
            return WhereSequence(self._node, predicate)

        return self._compose(Operation("where", (predicate,)), build)

    def select(self, selector: Callable[[T], U]) -> 'Query[U]':
        """Apply selector to each element."""
        check_callable(selector, "selector")
        return self._compose(Operation("select", (selector,)),
                             lambda: SelectSequence(self._node, selector))

    def select_with_index(self, selector: Callable[[T, int], U]) -> 'Query[U]':
        """Apply selector to each element and its zero-based position."""
        check_callable(selector, "selector")
        return self._compose(Operation("select_with_index", (selector,)),
                             lambda: SelectSequence(self._node, selector, with_index=True))

    def select_many(self, selector: Callable[[T], Iterable[Any]],
                    result_selector: Optional[Callable[[T, Any], U]] = None) -> 'Query[U]':
        """Map each element to a sub-sequence and flatten the results."""
        check_callable(selector, "selector")
        check_optional_callable(result_selector, "result_selector")
        return self._compose(Operation("select_many", (selector, result_selector)),
                             lambda: SelectManySequence(self._node, selector, result_selector))

    def skip(self, count: int) -> 'Query[T]':
        """Skip first count elements."""
        check_count(count, "count")
        return self._compose(Operation("skip", (count,)),
                             lambda: SkipSequence(self._node, count))

    def take(self, count: int) -> 'Query[T]':
        """Take first count elements."""
        check_count(count, "count")
        return self._compose(Operation("take", (count,)),
                             lambda: TakeSequence(self._node, count))

    def take_while(self, predicate: Callable[[T], bool]) -> 'Query[T]':
        check_callable(predicate, "predicate")
        return self._compose(Operation("take_while", (predicate,)),
                             lambda: TakeWhileSequence(self._node, predicate))

    def skip_while(self, predicate: Callable[[T], bool]) -> 'Query[T]':
        check_callable(predicate, "predicate")
        return self._compose(Operation("skip_while", (predicate,)),
                             lambda: SkipWhileSequence(self._node, predicate))

    def distinct(self, key: Optional[Callable[[T], Any]] = None) -> 'Query[T]':
        """
        Remove duplicate elements, keeping first appearances.

        Remembers every distinct key seen; avoid on infinite sources with
        unbounded cardinality.
        """
        check_optional_callable(key, "key")
        return self._compose(Operation("distinct", (key,)),
                             lambda: DistinctSequence(self._node, key))

    def chunk(self, size: int) -> 'Query[List[T]]':
        """Group consecutive elements into lists of size elements."""
        check_count(size, "size", minimum=1)
        return self._compose(Operation("chunk", (size,)),
                             lambda: ChunkSequence(self._node, size))

    def concat(self, other: Iterable[T]) -> 'Query[T]':
        """Elements of this query followed by those of other."""
        check_iterable(other, "other")
        return self._compose(Operation("concat", (other,)),
                             lambda: ConcatSequence(self._node, other))

    # Buffered operators

    def order_by(self, key_selector: Callable[[T], Any],
                 comparer: Optional[Callable[[Any, Any], int]] = None) -> 'OrderedQuery[T]':
        """Stable ascending sort by key_selector."""
        return self._order(key_selector, comparer, descending=False)

    def order_by_descending(self, key_selector: Callable[[T], Any],
                            comparer: Optional[Callable[[Any, Any], int]] = None) -> 'OrderedQuery[T]':
        """Stable descending sort by key_selector."""
        return self._order(key_selector, comparer, descending=True)

    def _order(self, key_selector, comparer, descending: bool) -> 'OrderedQuery[T]':
        check_callable(key_selector, "key_selector")
        check_optional_callable(comparer, "comparer")
        sort_key = SortKey(key_selector, descending, comparer)
        name = "order_by_descending" if descending else "order_by"
        return self._compose(Operation(name, (sort_key,)),
                             lambda: OrderedSequence(self._node, (sort_key,)))

    def group_by(self, key_selector: Callable[[T], K],
                 element_selector: Optional[Callable[[T], Any]] = None) -> 'Query[Grouping[K, Any]]':
        """Group elements by key, groups in first-appearance order of their key."""
        check_callable(key_selector, "key_selector")
        check_optional_callable(element_selector, "element_selector")
        return self._compose(Operation("group_by", (key_selector, element_selector)),
                             lambda: GroupBySequence(self._node, key_selector, element_selector))

    # Aliases

    filter = where
    map = select
    flat_map = select_many

    # Terminal operators

    def to_list(self) -> List[T]:
        """Collect all elements into a list."""
        return terminal.to_list(self)

    collect = to_list

    def to_set(self) -> Set[T]:
        return terminal.to_set(self)

    def to_dict(self, key_selector: Callable[[T], K],
                value_selector: Optional[Callable[[T], Any]] = None) -> Dict[K, Any]:
        """Build a dict; raises DuplicateKeyError when two elements share a key."""
        return terminal.to_dict(self, key_selector, value_selector)

    def to_lookup(self, key_selector: Callable[[T], K],
                  element_selector: Optional[Callable[[T], Any]] = None) -> Lookup:
        return terminal.to_lookup(self, key_selector, element_selector)

    def count(self, predicate: Optional[Callable[[T], bool]] = None) -> int:
        """Count (matching) elements."""
        check_optional_callable(predicate, "predicate")
        return terminal.count(*self._filtered(predicate))

    def any(self, predicate: Optional[Callable[[T], bool]] = None) -> bool:
        check_optional_callable(predicate, "predicate")
        return terminal.exists(*self._filtered(predicate))

    def all(self, predicate: Callable[[T], bool]) -> bool:
        check_callable(predicate, "predicate")
        return terminal.for_all(self, predicate)

    def contains(self, value: Any) -> bool:
        return terminal.contains(self, value)

    def first(self, predicate: Optional[Callable[[T], bool]] = None) -> T:
        """First (matching) element; raises EmptySequenceError if there is none."""
        check_optional_callable(predicate, "predicate")
        return terminal.first(*self._filtered(predicate))

    def first_or_default(self, predicate: Optional[Callable[[T], bool]] = None,
                         default: Any = None) -> Any:
        check_optional_callable(predicate, "predicate")
        source, predicate = self._filtered(predicate)
        return terminal.first_or_default(source, predicate, default)

    def single(self, predicate: Optional[Callable[[T], bool]] = None) -> T:
        """The only (matching) element."""
        check_optional_callable(predicate, "predicate")
        return terminal.single(*self._filtered(predicate))

    def single_or_default(self, predicate: Optional[Callable[[T], bool]] = None,
                          default: Any = None) -> Any:
        check_optional_callable(predicate, "predicate")
        source, predicate = self._filtered(predicate)
        return terminal.single_or_default(source, predicate, default)

    def last(self, predicate: Optional[Callable[[T], bool]] = None) -> T:
        check_optional_callable(predicate, "predicate")
        return terminal.last(*self._filtered(predicate))

    def last_or_default(self, predicate: Optional[Callable[[T], bool]] = None,
                        default: Any = None) -> Any:
        check_optional_callable(predicate, "predicate")
        source, predicate = self._filtered(predicate)
        return terminal.last_or_default(source, predicate, default)

    def element_at(self, index: int) -> T:
        return terminal.element_at(self, index)

    def element_at_or_default(self, index: int, default: Any = None) -> Any:
        return terminal.element_at_or_default(self, index, default)

    def aggregate(self, func: Callable[[Any, T], Any], seed: Any = terminal.MISSING,
                  result_selector: Optional[Callable[[Any], U]] = None) -> Any:
        """Fold elements left to right, starting from seed or the first element."""
        return terminal.aggregate(self, func, seed, result_selector)

    reduce = aggregate

    def sum(self, selector: Optional[Callable[[T], Any]] = None) -> Any:
        check_optional_callable(selector, "selector")
        return terminal.total(*self._projected(selector))

    def average(self, selector: Optional[Callable[[T], Any]] = None) -> float:
        check_optional_callable(selector, "selector")
        return terminal.average(*self._projected(selector))

    def min(self, selector: Optional[Callable[[T], Any]] = None) -> Any:
        check_optional_callable(selector, "selector")
        return terminal.minimum(*self._projected(selector))

    def max(self, selector: Optional[Callable[[T], Any]] = None) -> Any:
        check_optional_callable(selector, "selector")
        return terminal.maximum(*self._projected(selector))

    def for_each(self, action: Callable[[T], Any]) -> None:
        """Apply action to each element."""
        terminal.for_each(self, action)

    foreach = for_each

    # Factory methods

    @classmethod
    def from_iterable(cls, iterable: Iterable[T]) -> 'Query[T]':
        """Create a query over an iterable."""
        return cls(iterable)

    @classmethod
    def from_file(cls, path: Union[str, Path], encoding: str = 'utf-8') -> 'Query[str]':
        """Create a query over the lines of a text file."""
        return cls(FileSequence(path, encoding))

    @classmethod
    def from_provider(cls, provider: QueryProvider) -> 'ProvidedQuery':
        """Create a query whose operators are recorded for provider."""
        return ProvidedQuery(provider)

    @classmethod
    def range(cls, *args) -> 'Query[int]':
        """Create query of integers; takes the arguments of the builtin range."""
        if not 1 <= len(args) <= 3:
            raise ArgumentError("args", f"range expects 1 to 3 arguments, got {len(args)}")
        for position, arg in enumerate(args):
            check_integer(arg, f"args[{position}]")
        if len(args) == 3 and args[2] == 0:
            raise ArgumentError("step", "must not be zero")
        return cls(range(*args))

    @classmethod
    def count_from(cls, start: int = 0, step: int = 1) -> 'Query[int]':
        """Create an infinite query counting from start."""
        check_number(start, "start")
        check_number(step, "step")
        return cls(FactorySequence(lambda: itertools.count(start, step)))

    @classmethod
    def repeat(cls, value: T, times: Optional[int] = None) -> 'Query[T]':
        """Repeat value times times, or forever."""
        if times is None:
            return cls(FactorySequence(lambda: itertools.repeat(value)))
        check_count(times, "times")
        return cls(FactorySequence(lambda: itertools.repeat(value, times)))

    @classmethod
    def infinite(cls, func: Callable[[], T]) -> 'Query[T]':
        """Create infinite query of func() results."""
        check_callable(func, "func")

        def generator():
            while True:
                yield func()
        return cls(FactorySequence(generator))

    @classmethod
    def empty(cls) -> 'Query[Any]':
        return cls(())


class OrderedQuery(Query[T]):
    """A sorted query that accepts secondary keys."""

    def then_by(self, key_selector: Callable[[T], Any],
                comparer: Optional[Callable[[Any, Any], int]] = None) -> 'OrderedQuery[T]':
        """Break remaining ties by key_selector, ascending."""
        return self._then(key_selector, comparer, descending=False)

    def then_by_descending(self, key_selector: Callable[[T], Any],
                           comparer: Optional[Callable[[Any, Any], int]] = None) -> 'OrderedQuery[T]':
        """Break remaining ties by key_selector, descending."""
        return self._then(key_selector, comparer, descending=True)

    def _then(self, key_selector, comparer, descending: bool) -> 'OrderedQuery[T]':
        check_callable(key_selector, "key_selector")
        check_optional_callable(comparer, "comparer")
        sort_key = SortKey(key_selector, descending, comparer)
        name = "then_by_descending" if descending else "then_by"
        return self._compose(Operation(name, (sort_key,)),
                             lambda: self._node.then_by(sort_key))


class ProvidedQuery(OrderedQuery[Any]):
    """
    Query whose supported operators are recorded for a QueryProvider.

    Operators the provider does not support run in process on the
    provider's results; everything chained after them runs in process
    too. Predicate and selector arguments of terminal methods are
    recorded as ``where``/``select`` operations so the provider
    evaluates them; ``to_dict`` records a ``select`` of key/value pairs
    and ``to_lookup`` a ``group_by``. ``aggregate`` and ``for_each`` have
    no recordable form and run in process on the provider's results.
    """

    def __init__(self, provider: QueryProvider, plan: Tuple[Operation, ...] = ()):
        check_not_none(provider, "provider")
        self.provider = provider
        self.plan = tuple(plan)
        super().__init__(ProviderSequence(provider, self.plan))

    @property
    def ordered(self) -> bool:
        return bool(self.plan) and self.plan[-1].name in ORDERING_OPERATIONS

    def _compose(self, operation: Operation, build: Callable[[], Sequence]) -> Query:
        if operation.name in ("then_by", "then_by_descending") and not self.ordered:
            raise InvalidOperationError(f"{operation.name} requires an ordered query")
        if self.provider.supports(operation.name):
            return ProvidedQuery(self.provider, self.plan + (operation,))
        if operation.name in ("then_by", "then_by_descending"):
            # The recorded ordering cannot be extended in process
            raise InvalidOperationError(
                f"{type(self.provider).__name__} records orderings but does not support {operation.name}")
        logger.debug("%s does not support %s; running it in process",
                     type(self.provider).__name__, operation.name)
        return super()._compose(operation, build)

    def _filtered(self, predicate):
        if predicate is None:
            return self, None
        return self.where(predicate), None

    def _projected(self, selector):
        if selector is None:
            return self, None
        return self.select(selector), None

    def all(self, predicate: Callable[[Any], bool]) -> bool:
        check_callable(predicate, "predicate")
        return not self.where(Negation(predicate)).any()

    def to_dict(self, key_selector: Callable[[Any], K],
                value_selector: Optional[Callable[[Any], Any]] = None) -> Dict[K, Any]:
        """Build a dict from ``(key, value)`` pairs selected by the provider."""
        check_callable(key_selector, "key_selector")
        check_optional_callable(value_selector, "value_selector")
        pairs = self.select(KeyValueSelector(key_selector, value_selector))
        return terminal.to_dict(pairs, itemgetter(0), itemgetter(1))

    def to_lookup(self, key_selector: Callable[[Any], K],
                  element_selector: Optional[Callable[[Any], Any]] = None) -> Lookup:
        """Build a Lookup from the groupings of a recorded ``group_by``."""
        check_callable(key_selector, "key_selector")
        check_optional_callable(element_selector, "element_selector")
        lookup = Lookup()
        for grouping in self.group_by(key_selector, element_selector).to_list():
            for element in grouping:
                lookup.add(grouping.key, element)
        return lookup

    # Folds and actions cannot be recorded; they run on the provider's results

    def aggregate(self, func: Callable[[Any, Any], Any], seed: Any = terminal.MISSING,
                  result_selector: Optional[Callable[[Any], U]] = None) -> Any:
        logger.debug("%s cannot record aggregate; folding in process",
                     type(self.provider).__name__)
        return super().aggregate(func, seed, result_selector)

    reduce = aggregate

    def for_each(self, action: Callable[[Any], Any]) -> None:
        logger.debug("%s cannot record for_each; running the action in process",
                     type(self.provider).__name__)
        super().for_each(action)

    foreach = for_each


def _wrap(node: Sequence) -> Query:
    if isinstance(node, OrderedSequence):
        return OrderedQuery(node)
    return Query(node)
