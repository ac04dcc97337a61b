"""
Terminal operators.

Each function drives its source immediately: to completion, or until
the answer is known (first match, first violation, second match). The
cursor is always closed before the function returns or raises.
"""

from typing import Any, Callable, Dict, List, Optional, Set, TypeVar

from lazyseq.algorithms import build_lookup
from lazyseq.collections import Lookup
from lazyseq.errors import ArgumentOutOfRangeError, DuplicateKeyError, EmptySequenceError, MultipleMatchError
from lazyseq.sequences import Cursor, as_sequence
from lazyseq.validation import check_callable, check_count, check_optional_callable

T = TypeVar('T')
K = TypeVar('K')
U = TypeVar('U')

MISSING = object()


def _cursor(source: Any) -> Cursor:
    return as_sequence(source).cursor()


def _matches(predicate: Optional[Callable[[Any], bool]], item: Any) -> bool:
    return predicate is None or bool(predicate(item))


# Materialization

def to_list(source: Any) -> List[T]:
    with _cursor(source) as cursor:
        return list(cursor)


def to_set(source: Any) -> Set[T]:
    with _cursor(source) as cursor:
        return set(cursor)


def to_dict(source: Any,
            key_selector: Callable[[T], K],
            value_selector: Optional[Callable[[T], Any]] = None) -> Dict[K, Any]:
    """Map each element's key to the element (or its selected value); keys must be unique."""
    check_callable(key_selector, "key_selector")
    check_optional_callable(value_selector, "value_selector")
    result: Dict[K, Any] = {}
    with _cursor(source) as cursor:
        for item in cursor:
            key = key_selector(item)
            if key in result:
                raise DuplicateKeyError(key)
            result[key] = item if value_selector is None else value_selector(item)
    return result


def to_lookup(source: Any,
              key_selector: Callable[[T], K],
              element_selector: Optional[Callable[[T], Any]] = None) -> Lookup:
    check_callable(key_selector, "key_selector")
    check_optional_callable(element_selector, "element_selector")
    with _cursor(source) as cursor:
        return build_lookup(cursor, key_selector, element_selector)


def for_each(source: Any, action: Callable[[T], Any]) -> None:
    check_callable(action, "action")
    with _cursor(source) as cursor:
        for item in cursor:
            action(item)


# Counting and quantifiers

def count(source: Any, predicate: Optional[Callable[[T], bool]] = None) -> int:
    """
    Number of (matching) elements.

    Without a predicate, a source that knows its size answers without
    being iterated. With a predicate every element is tested.
    """
    check_optional_callable(predicate, "predicate")
    sequence = as_sequence(source)
    if predicate is None:
        size = sequence.known_size()
        if size is not None:
            return size

    total = 0
    with sequence.cursor() as cursor:
        for item in cursor:
            if _matches(predicate, item):
                total += 1
    return total


def exists(source: Any, predicate: Optional[Callable[[T], bool]] = None) -> bool:
    """True at the first (matching) element; False only after full exhaustion."""
    check_optional_callable(predicate, "predicate")
    with _cursor(source) as cursor:
        for item in cursor:
            if _matches(predicate, item):
                return True
    return False


def for_all(source: Any, predicate: Callable[[T], bool]) -> bool:
    """False at the first violating element; True only after full exhaustion."""
    check_callable(predicate, "predicate")
    with _cursor(source) as cursor:
        for item in cursor:
            if not predicate(item):
                return False
    return True


def contains(source: Any, value: Any) -> bool:
    with _cursor(source) as cursor:
        for item in cursor:
            if item == value:
                return True
    return False


# Element access

def first(source: Any, predicate: Optional[Callable[[T], bool]] = None) -> T:
    result = first_or_default(source, predicate, MISSING)
    if result is MISSING:
        raise EmptySequenceError()
    return result


def first_or_default(source: Any,
                     predicate: Optional[Callable[[T], bool]] = None,
                     default: Any = None) -> Any:
    check_optional_callable(predicate, "predicate")
    with _cursor(source) as cursor:
        for item in cursor:
            if _matches(predicate, item):
                return item
    return default


def last(source: Any, predicate: Optional[Callable[[T], bool]] = None) -> T:
    result = last_or_default(source, predicate, MISSING)
    if result is MISSING:
        raise EmptySequenceError()
    return result


def last_or_default(source: Any,
                    predicate: Optional[Callable[[T], bool]] = None,
                    default: Any = None) -> Any:
    check_optional_callable(predicate, "predicate")
    result = default
    with _cursor(source) as cursor:
        for item in cursor:
            if _matches(predicate, item):
                result = item
    return result


def single(source: Any, predicate: Optional[Callable[[T], bool]] = None) -> T:
    result = single_or_default(source, predicate, MISSING)
    if result is MISSING:
        raise EmptySequenceError()
    return result


def single_or_default(source: Any,
                      predicate: Optional[Callable[[T], bool]] = None,
                      default: Any = None) -> Any:
    """
    The only (matching) element, or default when there is none.

    A second match raises MultipleMatchError as soon as it is pulled.
    """
    check_optional_callable(predicate, "predicate")
    found = MISSING
    with _cursor(source) as cursor:
        for item in cursor:
            if _matches(predicate, item):
                if found is not MISSING:
                    raise MultipleMatchError()
                found = item
    return default if found is MISSING else found


def element_at(source: Any, index: int) -> T:
    result = element_at_or_default(source, index, MISSING)
    if result is MISSING:
        raise ArgumentOutOfRangeError("index", f"sequence has no element at position {index}")
    return result


def element_at_or_default(source: Any, index: int, default: Any = None) -> Any:
    check_count(index, "index")
    with _cursor(source) as cursor:
        for position, item in enumerate(cursor):
            if position == index:
                return item
    return default


# Aggregation

def aggregate(source: Any,
              func: Callable[[Any, T], Any],
              seed: Any = MISSING,
              result_selector: Optional[Callable[[Any], U]] = None) -> Any:
    """
    Fold the sequence left to right.

    Without a seed the first element starts the fold, and an empty
    sequence raises EmptySequenceError.
    """
    check_callable(func, "func")
    check_optional_callable(result_selector, "result_selector")
    with _cursor(source) as cursor:
        if seed is MISSING:
            step = cursor.advance()
            if step.exhausted:
                raise EmptySequenceError("Sequence contains no elements")
            result = step.value
        else:
            result = seed
        for item in cursor:
            result = func(result, item)
    return result if result_selector is None else result_selector(result)


def total(source: Any, selector: Optional[Callable[[T], Any]] = None) -> Any:
    check_optional_callable(selector, "selector")
    result = 0
    with _cursor(source) as cursor:
        for item in cursor:
            result = result + (item if selector is None else selector(item))
    return result


def average(source: Any, selector: Optional[Callable[[T], Any]] = None) -> float:
    check_optional_callable(selector, "selector")
    result = 0
    n = 0
    with _cursor(source) as cursor:
        for item in cursor:
            result = result + (item if selector is None else selector(item))
            n += 1
    if n == 0:
        raise EmptySequenceError("Sequence contains no elements")
    return result / n


def _extreme(source: Any, selector: Optional[Callable[[T], Any]], better: Callable[[Any, Any], bool]) -> Any:
    check_optional_callable(selector, "selector")
    best = MISSING
    with _cursor(source) as cursor:
        for item in cursor:
            value = item if selector is None else selector(item)
            if best is MISSING or better(value, best):
                best = value
    if best is MISSING:
        raise EmptySequenceError("Sequence contains no elements")
    return best


def minimum(source: Any, selector: Optional[Callable[[T], Any]] = None) -> Any:
    return _extreme(source, selector, lambda value, best: value < best)


def maximum(source: Any, selector: Optional[Callable[[T], Any]] = None) -> Any:
    return _extreme(source, selector, lambda value, best: best < value)
