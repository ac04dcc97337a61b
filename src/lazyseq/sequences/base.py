"""
The pull contract every data source and operator output satisfies.

A Sequence is a producer of cursors. A Cursor pulls one element per
``advance()`` call and reports the outcome as a ``Step``: either a value
or exhaustion. Exceptions are reserved for real failures.

Cursor lifecycle::

    NOT_STARTED -> RUNNING -> EXHAUSTED
          \\           \\
           +-----------+---> ABANDONED

Whatever a cursor holds (an upstream cursor, a file handle, a spill
file) is released exactly once, on the transition into EXHAUSTED or
ABANDONED. That covers normal exhaustion, an early ``close()`` and an
exception escaping ``advance()``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterator, Optional, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)


class CursorState(Enum):
    """Lifecycle of a cursor."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (CursorState.EXHAUSTED, CursorState.ABANDONED)


@dataclass(frozen=True)
class Step(Generic[T]):
    """Result of one pull: a value, or the end of the sequence."""
    value: Any = None
    exhausted: bool = False

    @classmethod
    def of(cls, value: T) -> 'Step[T]':
        return cls(value)

    def __repr__(self) -> str:
        if self.exhausted:
            return "Step(<exhausted>)"
        return f"Step({self.value!r})"


EXHAUSTED: Step = Step(exhausted=True)


class Cursor(Iterator[T], ABC):
    """
    A single pass over a sequence, driven by ``advance()``.

    Subclasses implement ``_advance`` and optionally ``_open`` (acquire a
    resource on the first pull) and ``_close`` (release it). The base
    class owns the state machine so that ``_close`` runs exactly once.

    Cursors are also Python iterators and context managers: leaving a
    ``with`` block abandons the cursor if it has not finished.
    """

    def __init__(self):
        self._state = CursorState.NOT_STARTED

    @property
    def state(self) -> CursorState:
        return self._state

    def advance(self) -> Step[T]:
        """Pull the next element."""
        if self._state.is_terminal:
            return EXHAUSTED

        if self._state is CursorState.NOT_STARTED:
            self._state = CursorState.RUNNING
            try:
                self._open()
            except BaseException:
                self._release(CursorState.ABANDONED)
                raise

        try:
            step = self._advance()
        except BaseException:
            self._release(CursorState.ABANDONED)
            raise

        if step.exhausted:
            self._release(CursorState.EXHAUSTED)
        return step

    def close(self) -> None:
        """Stop pulling; releases held resources if not already released."""
        if not self._state.is_terminal:
            self._release(CursorState.ABANDONED)

    def _release(self, state: CursorState) -> None:
        # State changes first so a re-entrant close() is a no-op
        self._state = state
        logger.debug("%s %s", type(self).__name__, state.value)
        self._close()

    def _open(self) -> None:
        """Acquire resources needed before the first element."""

    @abstractmethod
    def _advance(self) -> Step[T]:
        """Produce the next step. Called only while RUNNING."""

    def _close(self) -> None:
        """Release resources. Called exactly once."""

    # Iterator protocol

    def __iter__(self) -> 'Cursor[T]':
        return self

    def __next__(self) -> T:
        step = self.advance()
        if step.exhausted:
            raise StopIteration
        return step.value

    def __enter__(self) -> 'Cursor[T]':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        # Abandoned without close(); partially built cursors have no state
        if getattr(self, '_state', CursorState.EXHAUSTED).is_terminal:
            return
        try:
            self.close()
        except Exception:
            logger.exception("Error releasing abandoned %s", type(self).__name__)


class Sequence(ABC, Generic[T]):
    """
    A lazily pulled, ordered stream of elements.

    ``cursor()`` starts a new pass. Whether a second pass replays the same
    elements is reported by ``restartable``.
    """

    @abstractmethod
    def cursor(self) -> Cursor[T]:
        """Start a new pass over the sequence."""

    @property
    def restartable(self) -> bool:
        return True

    def known_size(self) -> Optional[int]:
        """Element count when it is known without iterating, else None."""
        return None

    def __iter__(self) -> Iterator[T]:
        """
        A new cursor, for ``for`` loops.

        Leaving such a loop with ``break`` or ``return`` releases the
        cursor only when it is garbage collected. For deterministic
        release on early exit use ``with sequence.cursor() as cursor:``.
        """
        return self.cursor()


class OperatorCursor(Cursor[T]):
    """
    Cursor of an operator node with a single upstream sequence.

    The upstream cursor is acquired on the first ``_pull()`` and closed
    when this cursor is released, or earlier through ``_close_upstream()``
    when the operator needs nothing more from it.
    """

    def __init__(self, source: Sequence):
        super().__init__()
        self._source = source
        self._upstream: Optional[Cursor] = None

    def _pull(self) -> Step:
        if self._upstream is None:
            self._upstream = self._source.cursor()
        return self._upstream.advance()

    def _close_upstream(self) -> None:
        upstream, self._upstream = self._upstream, None
        if upstream is not None:
            upstream.close()

    def _close(self) -> None:
        self._close_upstream()
