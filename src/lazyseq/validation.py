"""
Eager argument checks shared by operator nodes and the query builder.

These run when a pipeline is built, never when it is consumed.
"""

from numbers import Number
from typing import Any, Callable, Optional

from lazyseq.errors import ArgumentError, ArgumentOutOfRangeError


def check_not_none(value: Any, name: str) -> Any:
    if value is None:
        raise ArgumentError(name, "value cannot be None")
    return value


def check_callable(func: Optional[Callable], name: str) -> Callable:
    check_not_none(func, name)
    if not callable(func):
        raise ArgumentError(name, f"expected a callable, got {type(func).__name__}")
    return func


def check_optional_callable(func: Optional[Callable], name: str) -> Optional[Callable]:
    if func is None:
        return None
    return check_callable(func, name)


def check_iterable(value: Any, name: str) -> Any:
    check_not_none(value, name)
    if not hasattr(value, '__iter__'):
        raise ArgumentError(name, f"expected an iterable, got {type(value).__name__}")
    return value


def check_count(value: Any, name: str, minimum: int = 0) -> int:
    """Validate an integer bound such as a skip or take count."""
    # bool is an int subclass but never a meaningful count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArgumentError(name, f"expected an int, got {type(value).__name__}")
    if value < minimum:
        raise ArgumentOutOfRangeError(name, f"must be >= {minimum}, got {value}")
    return value


def check_integer(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArgumentError(name, f"expected an int, got {type(value).__name__}")
    return value


def check_number(value: Any, name: str) -> Any:
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ArgumentError(name, f"expected a number, got {type(value).__name__}")
    return value
