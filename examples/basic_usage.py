#!/usr/bin/env python3
"""
Basic usage examples for lazyseq.
"""

import time
import random
from lazyseq import Query, QueryConfig, QueryProvider


def example_streaming():
    """Example: Filter and project records lazily."""
    print("\n=== Streaming Example ===")

    data = [
        {'name': 'Alice', 'age': 25, 'score': 85},
        {'name': 'Bob', 'age': 30, 'score': 90},
        {'name': 'Charlie', 'age': 25, 'score': 78},
        {'name': 'David', 'age': 30, 'score': 92},
        {'name': 'Eve', 'age': 25, 'score': 88},
    ]

    result = Query(data) \
        .where(lambda x: x['age'] == 25) \
        .select(lambda x: {'name': x['name'], 'grade': 'A' if x['score'] >= 85 else 'B'}) \
        .to_list()

    print("Filtered and transformed data:")
    for item in result:
        print(f"  {item}")


def example_infinite():
    """Example: Short-circuit over an infinite source."""
    print("\n=== Infinite Source Example ===")

    squares = Query.count_from(1) \
        .select(lambda n: n * n) \
        .where(lambda n: n % 3 == 1) \
        .take(5) \
        .to_list()
    print(f"First five squares congruent to 1 mod 3: {squares}")

    first_big = Query.count_from(1).first(lambda n: 2 ** n > 10 ** 6)
    print(f"Smallest n with 2^n > 10^6: {first_big}")


def example_sorting():
    """Example: Stable multi-key sort that spills to disk."""
    print("\n=== Sorting Example ===")

    print("Generating 200K records...")
    records = [(random.randint(1, 50), random.random()) for _ in range(200000)]

    start = time.time()
    ordered = Query(records) \
        .order_by(lambda r: r[0]) \
        .then_by_descending(lambda r: r[1]) \
        .take(3) \
        .to_list()
    elapsed = time.time() - start

    print(f"Top of the ordering: {ordered}")
    print(f"Time taken: {elapsed:.2f}s")


def example_groupby():
    """Example: Group sales by store in first-appearance order."""
    print("\n=== GroupBy Example ===")

    stores = ['Store_A', 'Store_B', 'Store_C', 'Store_D']
    sales = [
        {'store': random.choice(stores), 'amount': random.uniform(10, 1000)}
        for _ in range(100000)
    ]

    totals = Query(sales) \
        .group_by(lambda s: s['store'], lambda s: s['amount']) \
        .select(lambda g: (g.key, len(g), Query(g).sum())) \
        .to_list()

    for store, count, total in totals:
        print(f"{store}: {count} transactions, ${total:,.2f} total")


def example_file():
    """Example: Stream the lines of a file."""
    print("\n=== File Example ===")

    longest = Query.from_file(__file__) \
        .where(lambda line: line.strip()) \
        .max(len)
    print(f"Longest line in this script: {longest} characters")


class EchoProvider(QueryProvider):
    """Provider that prints the plan it receives and runs it locally."""

    def __init__(self, rows):
        self.rows = rows

    def execute(self, plan):
        print(f"Plan: {[operation.name for operation in plan]}")
        rows = self.rows
        for operation in plan:
            function = operation.arguments[0]
            if operation.name == 'where':
                rows = [row for row in rows if function(row)]
            elif operation.name == 'select':
                rows = [function(row) for row in rows]
        return rows

    supported_operations = frozenset({'where', 'select'})


def example_provider():
    """Example: Record operators for an external provider."""
    print("\n=== Provider Example ===")

    query = Query.from_provider(EchoProvider(list(range(20)))) \
        .where(lambda n: n % 2 == 0) \
        .select(lambda n: n * 10) \
        .skip(2)
    print(f"Result: {query.to_list()}")


def main():
    """Run all examples."""
    print("=== lazyseq Examples ===")

    QueryConfig.set_defaults(
        sort_spill_threshold=50000,
        chunk_strategy='sqrt_n',
        compression='gzip'
    )

    example_streaming()
    example_infinite()
    example_sorting()
    example_groupby()
    example_file()
    example_provider()

    print("\n=== All examples completed! ===")


if __name__ == "__main__":
    main()
