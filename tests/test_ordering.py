#!/usr/bin/env python3
"""
Tests for sorting, including sorts that spill runs to disk.
"""

import os
import random
import shutil
import tempfile
import unittest
from functools import cmp_to_key

from lazyseq import Query, QueryConfig, OrderedQuery
from lazyseq.algorithms import SortKey, external_sort, SortBuffer
from lazyseq.config import config
from tracking import TrackedSource, CallCounter


class TestOrderBy(unittest.TestCase):

    def test_stability(self):
        data = [(1, "a"), (1, "b"), (0, "c")]
        result = Query(data).order_by(lambda t: t[0]).to_list()
        self.assertEqual(result, [(0, "c"), (1, "a"), (1, "b")])

    def test_descending_is_stable(self):
        data = [(1, "a"), (0, "b"), (1, "c"), (0, "d")]
        result = Query(data).order_by_descending(lambda t: t[0]).to_list()
        self.assertEqual(result, [(1, "a"), (1, "c"), (0, "b"), (0, "d")])

    def test_then_by_applies_keys_in_append_order(self):
        people = [
            ("smith", "ann", 30),
            ("jones", "bob", 25),
            ("smith", "cat", 41),
            ("jones", "dan", 25),
            ("smith", "eve", 30),
        ]
        result = (Query(people)
                  .order_by(lambda p: p[0])
                  .then_by_descending(lambda p: p[2])
                  .to_list())
        self.assertEqual([p[1] for p in result], ["bob", "dan", "cat", "ann", "eve"])

    def test_then_by_returns_new_query(self):
        data = [(2, "b"), (1, "b"), (2, "a"), (1, "a")]
        primary = Query(data).order_by(lambda t: t[1])
        composed = primary.then_by(lambda t: t[0])

        self.assertIsInstance(composed, OrderedQuery)
        self.assertEqual(primary.to_list(), [(2, "a"), (1, "a"), (2, "b"), (1, "b")])
        self.assertEqual(composed.to_list(), [(1, "a"), (2, "a"), (1, "b"), (2, "b")])

    def test_comparer(self):
        def by_length(a, b):
            return len(a) - len(b)

        words = ["ccc", "a", "bb", "dd", "e"]
        result = Query(words).order_by(lambda w: w, comparer=by_length).to_list()
        self.assertEqual(result, ["a", "e", "bb", "dd", "ccc"])

    def test_drains_source_before_first_output(self):
        source = TrackedSource([5, 3, 9, 1, 7])
        cursor = Query(source).order_by(lambda x: x).cursor()

        self.assertEqual(next(cursor), 1)
        self.assertEqual(source.pulled, 5)
        self.assertEqual(source.closed, 1)
        cursor.close()

    def test_key_selector_called_once_per_element_per_key(self):
        key = CallCounter(lambda x: -x)
        Query([4, 2, 8, 6]).order_by(key).to_list()
        self.assertEqual(key.calls, 4)

    def test_selector_errors_propagate_and_release(self):
        source = TrackedSource([1, 0, 2])

        with self.assertRaises(ZeroDivisionError):
            Query(source).order_by(lambda x: 1 / x).to_list()
        self.assertEqual(source.closed, 1)

    def test_order_by_after_take_on_infinite_source(self):
        result = Query.count_from(10, -1).take(4).order_by(lambda x: x).to_list()
        self.assertEqual(result, [7, 8, 9, 10])


class TestSpillingSort(unittest.TestCase):
    """Sorts that write sorted runs to disk."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self._saved = {
            "sort_spill_threshold": config.sort_spill_threshold,
            "chunk_strategy": config.chunk_strategy,
            "fixed_chunk_size": config.fixed_chunk_size,
            "external_storage_path": config.external_storage_path,
            "compression": config.compression,
        }
        QueryConfig.set_defaults(
            sort_spill_threshold=10,
            chunk_strategy='fixed',
            fixed_chunk_size=7,
            external_storage_path=self.temp_dir,
        )

    def tearDown(self):
        QueryConfig.set_defaults(**self._saved)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _run_files(self):
        return [name for name in os.listdir(self.temp_dir) if name.endswith('.run')]

    def _records(self, n=100):
        rng = random.Random(42)
        return [(rng.randint(0, 5), rng.randint(0, 3), i) for i in range(n)]

    def test_spilled_sort_matches_stable_sort(self):
        data = self._records()
        result = (Query(data)
                  .order_by(lambda r: r[0])
                  .then_by_descending(lambda r: r[1])
                  .to_list())

        expected = sorted(data, key=lambda r: (r[0], -r[1]))
        self.assertEqual(result, expected)
        self.assertEqual(self._run_files(), [])

    def test_spilled_descending_sort_is_stable(self):
        data = self._records()
        result = Query(data).order_by_descending(lambda r: r[0]).to_list()
        self.assertEqual(result, sorted(data, key=lambda r: r[0], reverse=True))

    def test_run_files_removed_on_abandonment(self):
        cursor = Query(self._records()).order_by(lambda r: r[1]).cursor()
        next(cursor)
        self.assertGreater(len(self._run_files()), 0)

        cursor.close()
        self.assertEqual(self._run_files(), [])

    def test_gzip_runs(self):
        QueryConfig.set_defaults(compression='gzip')
        data = self._records(50)
        result = Query(data).order_by(lambda r: r[2] % 4).to_list()
        self.assertEqual(result, sorted(data, key=lambda r: r[2] % 4))

    def test_spill_with_comparer(self):
        def reverse_numeric(a, b):
            return b - a

        data = self._records(40)
        result = external_sort(data, [SortKey(lambda r: r[0], comparer=reverse_numeric)])
        self.assertEqual(result, sorted(data, key=cmp_to_key(lambda a, b: reverse_numeric(a[0], b[0]))))

    def test_spill_disabled(self):
        QueryConfig.set_defaults(sort_spill_threshold=None)
        buffer = SortBuffer([SortKey(lambda x: x)])
        for value in range(50, 0, -1):
            buffer.add(value)
        self.assertFalse(buffer.spilled)
        self.assertEqual(list(buffer.sorted_items()), list(range(1, 51)))


if __name__ == "__main__":
    unittest.main()
