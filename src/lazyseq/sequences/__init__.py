"""The sequence contract and the sources that satisfy it."""

from lazyseq.sequences.base import (
    Cursor,
    CursorState,
    OperatorCursor,
    Sequence,
    Step,
    EXHAUSTED,
)
from lazyseq.sequences.sources import (
    IterableSequence,
    FactorySequence,
    FileSequence,
    IteratorCursor,
    as_sequence,
    cursor_of,
)

__all__ = [
    "Cursor",
    "CursorState",
    "OperatorCursor",
    "Sequence",
    "Step",
    "EXHAUSTED",
    "IterableSequence",
    "FactorySequence",
    "FileSequence",
    "IteratorCursor",
    "as_sequence",
    "cursor_of",
]
