#!/usr/bin/env python3
"""
Tests for deferred execution and eager argument validation.
"""

import unittest

from lazyseq import (
    Query, ArgumentError, ArgumentOutOfRangeError, CursorState,
)
from lazyseq.operators import WhereSequence, SelectSequence, GroupBySequence, TakeSequence
from tracking import TrackedSource, CallCounter


class OpenCountingIterable:
    """Iterable whose every __iter__ call counts as opening the source."""

    def __init__(self, items):
        self.items = items
        self.opened = 0

    def __iter__(self):
        self.opened += 1
        return iter(self.items)


class TestDeferredExecution(unittest.TestCase):
    """Building a pipeline runs nothing."""

    def test_where_not_invoked_until_first_pull(self):
        predicate = CallCounter(lambda x: x % 2 == 0)
        source = TrackedSource([1, 2, 3, 4])

        query = Query(source).where(predicate)
        cursor = query.cursor()

        self.assertEqual(predicate.calls, 0)
        self.assertEqual(source.opened, 0)
        self.assertEqual(cursor.state, CursorState.NOT_STARTED)

        step = cursor.advance()
        self.assertEqual(step.value, 2)
        self.assertEqual(predicate.calls, 2)
        self.assertEqual(cursor.state, CursorState.RUNNING)
        cursor.close()

    def test_select_not_invoked_until_first_pull(self):
        selector = CallCounter(lambda x: x * 10)
        query = Query([1, 2, 3]).select(selector)
        self.assertEqual(selector.calls, 0)

        self.assertEqual(query.first(), 10)
        self.assertEqual(selector.calls, 1)

    def test_whole_pipeline_is_deferred(self):
        calls = CallCounter(lambda x: x)
        source = TrackedSource(list(range(10)))

        query = (Query(source)
                 .where(calls)
                 .select(calls)
                 .select_many(lambda x: [calls(x)])
                 .distinct(calls)
                 .order_by(calls)
                 .then_by(calls)
                 .group_by(calls)
                 .skip(1)
                 .take(3))

        self.assertEqual(calls.calls, 0)
        self.assertEqual(source.opened, 0)
        self.assertEqual(source.pulled, 0)

        self.assertEqual(len(query.to_list()), 3)
        self.assertGreater(calls.calls, 0)

    def test_plain_iterable_opened_only_when_pulled(self):
        source = OpenCountingIterable(range(10))

        query = Query(source).where(lambda x: x % 2 == 0).take(2)
        self.assertEqual(source.opened, 0)
        self.assertTrue(query.restartable)

        self.assertEqual(query.to_list(), [0, 2])
        self.assertEqual(source.opened, 1)

    def test_repeated_consumption_of_restartable_source(self):
        query = Query([3, 1, 2]).where(lambda x: x > 1).select(lambda x: x * 2)
        self.assertTrue(query.restartable)
        self.assertEqual(query.to_list(), [6, 4])
        self.assertEqual(query.to_list(), [6, 4])


class TestEagerValidation(unittest.TestCase):
    """Malformed pipelines fail while being built, before any iteration."""

    def test_where_none_predicate(self):
        source = TrackedSource([1, 2, 3])
        with self.assertRaises(ArgumentError):
            Query(source).where(None)
        self.assertEqual(source.opened, 0)

    def test_argument_error_is_value_error(self):
        with self.assertRaises(ValueError):
            Query([1]).select(None)

    def test_non_callable_function(self):
        with self.assertRaises(ArgumentError) as ctx:
            Query([1]).where("not a function")
        self.assertEqual(ctx.exception.name, "predicate")

    def test_none_source(self):
        with self.assertRaises(ArgumentError):
            Query(None)
        with self.assertRaises(ArgumentError):
            WhereSequence(None, lambda x: True)

    def test_non_iterable_source(self):
        with self.assertRaises(ArgumentError):
            Query(42)

    def test_operator_nodes_validate_on_construction(self):
        with self.assertRaises(ArgumentError):
            SelectSequence([1, 2], None)
        with self.assertRaises(ArgumentError):
            GroupBySequence([1, 2], None)
        with self.assertRaises(ArgumentOutOfRangeError):
            TakeSequence([1, 2], -1)

    def test_negative_bounds(self):
        query = Query([1, 2, 3])
        with self.assertRaises(ArgumentOutOfRangeError):
            query.skip(-1)
        with self.assertRaises(ArgumentOutOfRangeError):
            query.take(-5)
        with self.assertRaises(ArgumentOutOfRangeError):
            query.chunk(0)

    def test_non_integer_bounds(self):
        with self.assertRaises(ArgumentError):
            Query([1]).take("3")
        with self.assertRaises(ArgumentError):
            Query([1]).skip(1.5)
        with self.assertRaises(ArgumentError):
            Query([1]).take(True)

    def test_missing_key_selectors(self):
        query = Query([1, 2])
        with self.assertRaises(ArgumentError):
            query.order_by(None)
        with self.assertRaises(ArgumentError):
            query.order_by(lambda x: x).then_by(None)
        with self.assertRaises(ArgumentError):
            query.group_by(None)
        with self.assertRaises(ArgumentError):
            query.order_by(lambda x: x, comparer=5)

    def test_range_arguments(self):
        with self.assertRaises(ArgumentError):
            Query.range("x")
        with self.assertRaises(ArgumentError):
            Query.range()
        with self.assertRaises(ArgumentError):
            Query.range(1, 2, 3, 4)
        with self.assertRaises(ArgumentError):
            Query.range(0, 10, 0)
        with self.assertRaises(ArgumentError):
            Query.range(0, 2.5)
        self.assertEqual(Query.range(10, 0, -3).to_list(), [10, 7, 4, 1])
        self.assertEqual(Query.range(5).count(), 5)

    def test_count_from_arguments(self):
        with self.assertRaises(ArgumentError):
            Query.count_from(None)
        with self.assertRaises(ArgumentError):
            Query.count_from(0, "1")
        self.assertEqual(Query.count_from(0.5, 0.5).take(2).to_list(), [0.5, 1.0])

    def test_validation_on_infinite_source(self):
        with self.assertRaises(ArgumentError):
            Query.count_from(0).where(lambda x: x > 0).select(None)

    def test_terminal_validation_before_iteration(self):
        source = TrackedSource([1, 2, 3])
        with self.assertRaises(ArgumentError):
            Query(source).to_dict(None)
        with self.assertRaises(ArgumentError):
            Query(source).all(None)
        with self.assertRaises(ArgumentOutOfRangeError):
            Query(source).element_at(-1)
        self.assertEqual(source.opened, 0)


if __name__ == "__main__":
    unittest.main()
