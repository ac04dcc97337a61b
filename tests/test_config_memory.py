#!/usr/bin/env python3
"""
Tests for configuration and memory monitoring.
"""

import logging
import shutil
import tempfile
import unittest
from unittest import mock

from lazyseq import Query, QueryConfig, MemoryMonitor, MemoryPressureLevel
from lazyseq.algorithms import SortBuffer, SortKey
from lazyseq.config import config, ChunkStrategy, CompressionType
from lazyseq.memory import LoggingHandler, MemoryInfo, monitor


class TestQueryConfig(unittest.TestCase):

    def setUp(self):
        self._saved = {
            "chunk_strategy": config.chunk_strategy,
            "compression": config.compression,
            "fixed_chunk_size": config.fixed_chunk_size,
        }

    def tearDown(self):
        QueryConfig.set_defaults(**self._saved)

    def test_singleton(self):
        self.assertIs(QueryConfig.get_instance(), config)

    def test_set_defaults_coerces_enum_names(self):
        QueryConfig.set_defaults(chunk_strategy='fixed', compression='gzip')
        self.assertIs(config.chunk_strategy, ChunkStrategy.FIXED)
        self.assertIs(config.compression, CompressionType.GZIP)

    def test_set_defaults_ignores_unknown_keys(self):
        QueryConfig.set_defaults(no_such_option=1)
        self.assertFalse(hasattr(config, "no_such_option"))

    def test_chunk_sizes(self):
        QueryConfig.set_defaults(chunk_strategy='fixed', fixed_chunk_size=123)
        self.assertEqual(config.calculate_chunk_size(10 ** 6), 123)

        QueryConfig.set_defaults(chunk_strategy=ChunkStrategy.SQRT_N)
        self.assertEqual(config.calculate_chunk_size(10 ** 6), 1000)
        self.assertEqual(config.calculate_chunk_size(4), config.min_chunk_size)

    def test_format_bytes(self):
        self.assertEqual(config.format_bytes(512), "512.00 B")
        self.assertEqual(config.format_bytes(1536), "1.50 KB")


class TestMemoryMonitor(unittest.TestCase):

    def test_memory_info(self):
        info = MemoryMonitor().get_memory_info()
        self.assertGreater(info.total, 0)
        self.assertIsInstance(info.pressure_level, MemoryPressureLevel)
        self.assertIn("Pressure:", str(info))

    def test_limit_caps_total(self):
        info = MemoryMonitor(memory_limit=1024).get_memory_info()
        self.assertEqual(info.total, 1024)
        self.assertIs(info.pressure_level, MemoryPressureLevel.CRITICAL)

    def test_pressure_ordering(self):
        self.assertTrue(MemoryPressureLevel.CRITICAL > MemoryPressureLevel.HIGH)
        self.assertTrue(MemoryPressureLevel.HIGH >= MemoryPressureLevel.HIGH)

    def test_current_pressure_is_cached_within_interval(self):
        m = MemoryMonitor(check_interval=3600, memory_limit=1024)
        self.assertIs(m.current_pressure(), MemoryPressureLevel.CRITICAL)
        with mock.patch.object(m, "check_memory_pressure") as check:
            self.assertIs(m.current_pressure(), MemoryPressureLevel.CRITICAL)
            check.assert_not_called()

    def test_logging_handler(self):
        m = MemoryMonitor(memory_limit=1024)
        m.add_handler(LoggingHandler(logger=logging.getLogger("lazyseq.test")))
        with self.assertLogs("lazyseq.test", level="CRITICAL"):
            m.check_memory_pressure()

    def test_logging_handler_quiet_period(self):
        handler = LoggingHandler(logger=logging.getLogger("lazyseq.test"))
        info = MemoryInfo(total=100, available=10, used=90, percent=90.0,
                          pressure_level=MemoryPressureLevel.HIGH, timestamp=0.0)
        with self.assertLogs("lazyseq.test", level="ERROR") as logs:
            handler.handle(MemoryPressureLevel.HIGH, info)
            handler.handle(MemoryPressureLevel.HIGH, info)
        self.assertEqual(len(logs.records), 1)


class TestPressureSpilling(unittest.TestCase):
    """HIGH pressure makes a sort spill before reaching its threshold."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self._saved = {
            "pressure_check_interval": config.pressure_check_interval,
            "chunk_strategy": config.chunk_strategy,
            "fixed_chunk_size": config.fixed_chunk_size,
            "external_storage_path": config.external_storage_path,
        }
        QueryConfig.set_defaults(
            pressure_check_interval=5,
            chunk_strategy='fixed',
            fixed_chunk_size=7,
            external_storage_path=self.temp_dir,
        )

    def tearDown(self):
        QueryConfig.set_defaults(**self._saved)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_high_pressure_spills(self):
        buffer = SortBuffer([SortKey(lambda x: x)], spill_threshold=1000)
        with mock.patch.object(monitor, "current_pressure", return_value=MemoryPressureLevel.HIGH):
            for value in range(30, 0, -1):
                buffer.add(value)
        try:
            self.assertTrue(buffer.spilled)
            self.assertEqual(list(buffer.sorted_items()), list(range(1, 31)))
        finally:
            buffer.close()

    def test_low_pressure_stays_in_memory(self):
        buffer = SortBuffer([SortKey(lambda x: x)], spill_threshold=1000)
        with mock.patch.object(monitor, "current_pressure", return_value=MemoryPressureLevel.LOW):
            for value in range(30):
                buffer.add(value)
        self.assertFalse(buffer.spilled)
        buffer.close()

    def test_query_result_unchanged_under_pressure(self):
        data = [(i % 4, i) for i in range(40)]
        with mock.patch.object(monitor, "current_pressure", return_value=MemoryPressureLevel.CRITICAL):
            result = Query(data).order_by_descending(lambda r: r[0]).to_list()
        self.assertEqual(result, sorted(data, key=lambda r: r[0], reverse=True))


if __name__ == "__main__":
    unittest.main()
