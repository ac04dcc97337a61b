"""
Stable sort buffer that spills sorted runs to disk.

Small inputs are sorted in memory. Once the buffer passes the configured
spill threshold, or memory pressure turns HIGH, buffered items are sorted
into a run and written to a temporary file; further runs are sized by
the configured chunk strategy. The final order comes from a k-way merge
of the runs. Runs hold consecutive stretches of the input and
``heapq.merge`` prefers earlier runs on ties, so the result is stable.

Spilled items must be picklable. Key selectors of spilled items run once
more during the merge.
"""

import os
import gzip
import heapq
import pickle
import logging
import tempfile
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, TypeVar

from lazyseq.config import config, CompressionType
from lazyseq.memory import monitor, MemoryPressureLevel
from lazyseq.algorithms.ordering import SortKey, composite_key_function, sort_in_memory

T = TypeVar('T')

logger = logging.getLogger(__name__)


@dataclass
class SortRun:
    """A sorted run on disk."""
    filename: str
    count: int
    compressed: bool = False


class SortBuffer:
    """
    Collects items for a stable multi-key sort.

    ``add`` every item, then iterate ``sorted_items()`` once. ``close``
    removes any run files and may be called at any point.
    """

    def __init__(self,
                 keys: Sequence[SortKey],
                 spill_threshold: Optional[int] = None,
                 storage_path: Optional[str] = None):
        self.keys = list(keys)
        self.spill_threshold = spill_threshold if spill_threshold is not None else config.sort_spill_threshold
        self.storage_path = storage_path or config.external_storage_path
        self.runs: List[SortRun] = []
        self._items: List[T] = []
        self._seen = 0
        self._run_size: Optional[int] = None

    @property
    def spilled(self) -> bool:
        return bool(self.runs)

    def add(self, item: T) -> None:
        self._items.append(item)
        self._seen += 1

        if self.spill_threshold is None:
            return

        if self._run_size is not None:
            if len(self._items) >= self._run_size:
                self._spill()
        elif len(self._items) >= self.spill_threshold:
            self._start_spilling("buffer reached %d items" % len(self._items))
        elif self._seen % config.pressure_check_interval == 0:
            if monitor.current_pressure() >= MemoryPressureLevel.HIGH:
                self._start_spilling("memory pressure")

    def _start_spilling(self, reason: str) -> None:
        logger.info("Sort spilling to %s: %s", self.storage_path, reason)
        self._spill()

    def _spill(self) -> None:
        run_items = sort_in_memory(self._items, self.keys)
        self._items = []

        os.makedirs(self.storage_path, exist_ok=True)
        fd, filename = tempfile.mkstemp(suffix='.run', dir=self.storage_path)
        os.close(fd)
        run = SortRun(filename=filename, count=len(run_items),
                      compressed=config.compression == CompressionType.GZIP)
        self.runs.append(run)

        with _open_run(run, 'wb') as f:
            for item in run_items:
                pickle.dump(item, f, protocol=pickle.HIGHEST_PROTOCOL)

        self._run_size = config.calculate_chunk_size(self._seen)
        logger.debug("Wrote run %s (%d items, next run size %d)",
                     filename, len(run_items), self._run_size)

    def sorted_items(self) -> Iterator[T]:
        """Items in sorted order."""
        if not self.runs:
            items, self._items = self._items, []
            return iter(sort_in_memory(items, self.keys))
        return self._merge_runs()

    def _merge_runs(self) -> Iterator[T]:
        tail = sort_in_memory(self._items, self.keys)
        self._items = []
        readers = [_read_run(run) for run in self.runs]
        try:
            # The in-memory tail holds the latest items, so it merges last
            yield from heapq.merge(*readers, iter(tail), key=composite_key_function(self.keys))
        finally:
            for reader in readers:
                reader.close()

    def close(self) -> None:
        """Drop buffered items and delete run files."""
        self._items = []
        runs, self.runs = self.runs, []
        for run in runs:
            if os.path.exists(run.filename):
                os.unlink(run.filename)


def _open_run(run: SortRun, mode: str):
    if run.compressed:
        return gzip.open(run.filename, mode, compresslevel=config.compression_level)
    return open(run.filename, mode)


def _read_run(run: SortRun) -> Iterator[Any]:
    with _open_run(run, 'rb') as f:
        for _ in range(run.count):
            yield pickle.load(f)


def external_sort(data, keys: Sequence[SortKey], spill_threshold: Optional[int] = None,
                  storage_path: Optional[str] = None) -> List[T]:
    """
    Sort any iterable by the given keys.

    Args:
        data: Iterable of items to sort
        keys: Ordering, primary key first
        spill_threshold: Items kept in memory before spilling (None for configured)
        storage_path: Path for temporary files

    Returns:
        Sorted list
    """
    buffer = SortBuffer(keys, spill_threshold=spill_threshold, storage_path=storage_path)
    try:
        for item in data:
            buffer.add(item)
        return list(buffer.sorted_items())
    finally:
        buffer.close()
