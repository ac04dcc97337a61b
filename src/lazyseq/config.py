"""
Configuration management for query pipelines.
"""

import os
import math
import tempfile
from typing import Any, Optional
from dataclasses import dataclass, field, fields
from enum import Enum
import psutil


class ChunkStrategy(Enum):
    """Strategy for sizing the sorted runs of a spilling sort."""
    SQRT_N = "sqrt_n"
    MEMORY_BASED = "memory_based"
    FIXED = "fixed"
    ADAPTIVE = "adaptive"


class CompressionType(Enum):
    """Compression applied to spilled sort runs."""
    NONE = "none"
    GZIP = "gzip"


@dataclass
class QueryConfig:
    """Global configuration for query execution."""

    # Memory limits
    memory_limit: int = field(default_factory=lambda: int(psutil.virtual_memory().total * 0.8))

    # Storage
    external_storage_path: str = field(default_factory=lambda: os.path.join(tempfile.gettempdir(), "lazyseq"))
    compression: CompressionType = CompressionType.NONE
    compression_level: int = 6

    # Chunking
    chunk_strategy: ChunkStrategy = ChunkStrategy.SQRT_N
    fixed_chunk_size: int = 10000
    min_chunk_size: int = 100
    max_chunk_size: int = 10_000_000

    # Buffered operators
    sort_spill_threshold: Optional[int] = 1_000_000  # None keeps every sort in memory
    pressure_check_interval: int = 10_000  # Items drained between memory checks
    distinct_warning_threshold: int = 1_000_000

    # Optimizations
    fuse_filters: bool = True

    _instance: Optional['QueryConfig'] = None

    def __post_init__(self):
        """Initialize storage directory."""
        os.makedirs(self.external_storage_path, exist_ok=True)

    @classmethod
    def get_instance(cls) -> 'QueryConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def set_defaults(cls, **kwargs) -> None:
        """Set default configuration values."""
        instance = cls.get_instance()
        enum_fields = {
            f.name: f.type for f in fields(instance)
            if isinstance(f.type, type) and issubclass(f.type, Enum)
        }
        for key, value in kwargs.items():
            if not hasattr(instance, key):
                continue
            if key in enum_fields and isinstance(value, str):
                value = enum_fields[key](value)
            setattr(instance, key, value)
            if key == 'external_storage_path':
                os.makedirs(value, exist_ok=True)

    def calculate_chunk_size(self, total_size: int) -> int:
        """Calculate optimal chunk size based on strategy."""
        if self.chunk_strategy == ChunkStrategy.FIXED:
            return self.fixed_chunk_size

        elif self.chunk_strategy == ChunkStrategy.SQRT_N:
            sqrt_n = int(math.sqrt(total_size))
            return max(self.min_chunk_size, min(sqrt_n, self.max_chunk_size))

        elif self.chunk_strategy == ChunkStrategy.MEMORY_BASED:
            available = psutil.virtual_memory().available
            # Use 10% of available memory for chunks
            chunk_size = int(available * 0.1 / 8)  # Assume 8 bytes per item
            return max(self.min_chunk_size, min(chunk_size, self.max_chunk_size))

        elif self.chunk_strategy == ChunkStrategy.ADAPTIVE:
            # Start with sqrt(n) and adjust based on memory pressure
            base_size = int(math.sqrt(total_size))
            memory_percent = psutil.virtual_memory().percent

            if memory_percent > 90:
                return self.min_chunk_size
            elif memory_percent > 70:
                return max(self.min_chunk_size, base_size // 2)
            elif memory_percent < 30:
                return min(self.max_chunk_size, base_size * 2)
            else:
                return max(self.min_chunk_size, min(base_size, self.max_chunk_size))

        return self.fixed_chunk_size

    def format_bytes(self, bytes: int) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes < 1024.0:
                return f"{bytes:.2f} {unit}"
            bytes /= 1024.0
        return f"{bytes:.2f} PB"


# Global configuration instance
config = QueryConfig.get_instance()
