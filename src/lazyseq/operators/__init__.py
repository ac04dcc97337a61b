"""Operator nodes: streaming and buffered."""

from lazyseq.operators.streaming import (
    OperatorSequence,
    WhereSequence,
    SelectSequence,
    SelectManySequence,
    SkipSequence,
    TakeSequence,
    TakeWhileSequence,
    SkipWhileSequence,
    DistinctSequence,
    ChunkSequence,
    ConcatSequence,
)
from lazyseq.operators.buffered import (
    OrderedSequence,
    GroupBySequence,
)

__all__ = [
    "OperatorSequence",
    "WhereSequence",
    "SelectSequence",
    "SelectManySequence",
    "SkipSequence",
    "TakeSequence",
    "TakeWhileSequence",
    "SkipWhileSequence",
    "DistinctSequence",
    "ChunkSequence",
    "ConcatSequence",
    "OrderedSequence",
    "GroupBySequence",
]
