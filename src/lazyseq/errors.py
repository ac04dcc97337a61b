"""
Exceptions raised by query pipelines.

Argument errors are raised while a pipeline is being built. Everything
derived from InvalidOperationError is raised while it is being consumed.
"""

from typing import Any


class QueryError(Exception):
    """Base class for errors raised by lazyseq itself."""


class ArgumentError(QueryError, ValueError):
    """An operator was given a missing or malformed argument."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"{name}: {message}")


class ArgumentOutOfRangeError(ArgumentError):
    """A numeric argument is outside the range the operator accepts."""


class InvalidOperationError(QueryError, RuntimeError):
    """The sequence cannot satisfy the requested operation."""


class EmptySequenceError(InvalidOperationError):
    """A terminal operator needed at least one element and got none."""

    def __init__(self, message: str = "Sequence contains no matching element"):
        super().__init__(message)


class MultipleMatchError(InvalidOperationError):
    """A uniqueness operator found more than one matching element."""

    def __init__(self, message: str = "Sequence contains more than one matching element"):
        super().__init__(message)


class DuplicateKeyError(InvalidOperationError):
    """Two elements produced the same key while building a unique-key map."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"An element with the same key already exists: {key!r}")
