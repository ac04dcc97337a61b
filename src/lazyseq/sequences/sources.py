"""
Data sources at the root of a pipeline.

Restartability per source:

- IterableSequence over a container (list, tuple, dict, set, range, ...)
  is restartable; over a bare iterator or generator object it is
  single-pass and refuses a second cursor.
- FactorySequence calls its factory once per cursor and is restartable.
- FileSequence reopens the file for every cursor and is restartable; the
  handle is owned by the cursor and closed when the cursor is released.
"""

import logging
from collections.abc import Iterator as IteratorABC, Sized
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar, Union

from lazyseq.errors import ArgumentError, InvalidOperationError
from lazyseq.sequences.base import Cursor, Sequence, Step, EXHAUSTED
from lazyseq.validation import check_callable, check_not_none

T = TypeVar('T')

logger = logging.getLogger(__name__)

_NO_VALUE = object()


class IteratorCursor(Cursor[T]):
    """Cursor over a Python iterator obtained on the first pull."""

    def __init__(self, open_iterator: Callable[[], Iterator[T]]):
        super().__init__()
        self._open_iterator = open_iterator
        self._iterator: Optional[Iterator[T]] = None

    def _open(self) -> None:
        self._iterator = self._open_iterator()

    def _advance(self) -> Step[T]:
        value = next(self._iterator, _NO_VALUE)
        if value is _NO_VALUE:
            return EXHAUSTED
        return Step(value)

    def _close(self) -> None:
        iterator, self._iterator = self._iterator, None
        # Generators run their finally blocks on close()
        close = getattr(iterator, 'close', None)
        if close is not None:
            close()


class IterableSequence(Sequence[T]):
    """A sequence over any Python iterable."""

    def __init__(self, iterable: Iterable[T]):
        check_not_none(iterable, "source")
        if not hasattr(iterable, '__iter__'):
            raise ArgumentError("source", f"expected an iterable, got {type(iterable).__name__}")
        self._iterable = iterable
        # Classified without calling __iter__, which may acquire a resource
        self._single_pass = isinstance(iterable, IteratorABC)
        self._consumed = False

    @property
    def restartable(self) -> bool:
        return not self._single_pass

    def known_size(self) -> Optional[int]:
        if not self._single_pass and isinstance(self._iterable, Sized):
            return len(self._iterable)
        return None

    def cursor(self) -> Cursor[T]:
        if self._single_pass:
            if self._consumed:
                raise InvalidOperationError("Single-pass sequence has already been consumed")
            self._consumed = True
        return IteratorCursor(lambda: iter(self._iterable))


class FactorySequence(Sequence[T]):
    """A sequence whose factory produces a fresh iterator for every pass."""

    def __init__(self, factory: Callable[[], Iterable[T]]):
        self._factory = check_callable(factory, "factory")

    def cursor(self) -> Cursor[T]:
        return IteratorCursor(lambda: iter(self._factory()))


class FileCursor(Cursor[str]):
    """Reads lines from a file opened on the first pull."""

    def __init__(self, path: Path, encoding: str):
        super().__init__()
        self._path = path
        self._encoding = encoding
        self._handle = None

    def _open(self) -> None:
        self._handle = open(self._path, 'r', encoding=self._encoding)
        logger.debug("Opened %s", self._path)

    def _advance(self) -> Step[str]:
        line = self._handle.readline()
        if not line:
            return EXHAUSTED
        return Step(line.rstrip('\n\r'))

    def _close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
            logger.debug("Closed %s", self._path)


class FileSequence(Sequence[str]):
    """Stream lines from a text file."""

    def __init__(self, path: Union[str, Path], encoding: str = 'utf-8'):
        check_not_none(path, "path")
        self.path = Path(path)
        self.encoding = encoding

    def cursor(self) -> Cursor[str]:
        return FileCursor(self.path, self.encoding)


def as_sequence(source: Any) -> Sequence:
    """Wrap a Sequence, an iterable or an iterator factory as a Sequence."""
    check_not_none(source, "source")
    if isinstance(source, Sequence):
        return source
    if hasattr(source, '__iter__'):
        return IterableSequence(source)
    if callable(source):
        return FactorySequence(source)
    raise ArgumentError("source", f"expected an iterable or a callable, got {type(source).__name__}")


def cursor_of(iterable: Iterable[T]) -> Cursor[T]:
    """Open a cursor over a Sequence or a plain iterable."""
    if isinstance(iterable, Sequence):
        return iterable.cursor()
    if not hasattr(iterable, '__iter__'):
        raise TypeError(f"'{type(iterable).__name__}' object is not iterable")
    return IteratorCursor(lambda: iter(iterable))
