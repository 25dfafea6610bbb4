"""
Configuration management for stream buffering and error policy.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum
import psutil


class WatermarkStrategy(Enum):
    """Strategy for determining the backpressure threshold."""
    FIXED = "fixed"
    MEMORY_BASED = "memory_based"


class WriteErrorPolicy(Enum):
    """What a Writable does when its write hook reports an error."""
    REPORT = "report"    # fail only that write's callback
    DESTROY = "destroy"  # fail the callback and destroy the stream


@dataclass
class StreamConfig:
    """Global configuration for stream buffering."""
    
    # Backpressure
    high_water_mark: int = 16384
    object_size: int = 1024  # size charged for chunks that are not bytes-like
    watermark_strategy: WatermarkStrategy = WatermarkStrategy.FIXED
    memory_fraction: float = 0.001  # share of available RAM per stream buffer
    min_high_water_mark: int = 1024
    max_high_water_mark: int = 64 * 1024 * 1024
    
    # Lifecycle
    auto_destroy: bool = True
    write_error_policy: WriteErrorPolicy = WriteErrorPolicy.REPORT
    strict_callbacks: bool = False
    
    _instance: Optional['StreamConfig'] = None
    
    @classmethod
    def get_instance(cls) -> 'StreamConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance
    
    @classmethod
    def set_defaults(cls, **kwargs) -> None:
        """Set default configuration values."""
        instance = cls.get_instance()
        for key, value in kwargs.items():
            if not hasattr(instance, key):
                continue
            if key == 'watermark_strategy' and isinstance(value, str):
                value = WatermarkStrategy(value)
            elif key == 'write_error_policy' and isinstance(value, str):
                value = WriteErrorPolicy(value)
            setattr(instance, key, value)
    
    @classmethod
    def reset(cls) -> None:
        """Restore every setting to its default."""
        defaults = cls()
        instance = cls.get_instance()
        for key in defaults.__dataclass_fields__:
            if key.startswith('_'):
                continue
            setattr(instance, key, getattr(defaults, key))
    
    def calculate_high_water_mark(self) -> int:
        """Calculate the buffer threshold based on strategy."""
        if self.watermark_strategy == WatermarkStrategy.MEMORY_BASED:
            available = psutil.virtual_memory().available
            mark = int(available * self.memory_fraction)
            return max(self.min_high_water_mark, min(mark, self.max_high_water_mark))
        
        return self.high_water_mark
    
    def byte_length(self, chunk) -> int:
        """Size of a chunk in buffer units."""
        if isinstance(chunk, (bytes, bytearray)):
            return len(chunk)
        if isinstance(chunk, memoryview):
            return chunk.nbytes
        return self.object_size


# Global configuration instance
config = StreamConfig.get_instance()
