"""
lazyseq: lazy, composable sequence queries.

Pipelines of filter, projection, flattening, partitioning,
deduplication, sorting, grouping and aggregation operators over finite
or infinite sequences, with deferred execution, eager argument
validation and deterministic release of every resource a pipeline opens.
"""

from lazyseq.config import QueryConfig
from lazyseq.errors import (
    QueryError,
    ArgumentError,
    ArgumentOutOfRangeError,
    InvalidOperationError,
    EmptySequenceError,
    MultipleMatchError,
    DuplicateKeyError,
)
from lazyseq.sequences import Cursor, CursorState, Sequence, Step
from lazyseq.collections import Grouping, Lookup
from lazyseq.provider import Operation, QueryProvider
from lazyseq.query import Query, OrderedQuery, ProvidedQuery
from lazyseq.memory import MemoryMonitor, MemoryPressureLevel

__version__ = "0.1.0"
__license__ = "Apache-2.0"

__all__ = [
    "QueryConfig",
    "QueryError",
    "ArgumentError",
    "ArgumentOutOfRangeError",
    "InvalidOperationError",
    "EmptySequenceError",
    "MultipleMatchError",
    "DuplicateKeyError",
    "Cursor",
    "CursorState",
    "Sequence",
    "Step",
    "Grouping",
    "Lookup",
    "Operation",
    "QueryProvider",
    "Query",
    "OrderedQuery",
    "ProvidedQuery",
    "MemoryMonitor",
    "MemoryPressureLevel",
]
