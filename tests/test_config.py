#!/usr/bin/env python3
"""
Tests for stream configuration.
"""

import unittest
import psutil
from backflow import StreamConfig, WatermarkStrategy, WriteErrorPolicy
from backflow.config import config


class TestStreamConfig(unittest.TestCase):
    """Test global defaults and buffer sizing."""
    
    def tearDown(self):
        StreamConfig.reset()
    
    def test_singleton(self):
        self.assertIs(StreamConfig.get_instance(), config)
    
    def test_set_defaults_accepts_strings(self):
        StreamConfig.set_defaults(
            watermark_strategy='memory_based',
            write_error_policy='destroy',
            high_water_mark=10,
            not_a_setting=True,
        )
        
        self.assertEqual(config.watermark_strategy, WatermarkStrategy.MEMORY_BASED)
        self.assertEqual(config.write_error_policy, WriteErrorPolicy.DESTROY)
        self.assertEqual(config.high_water_mark, 10)
        self.assertFalse(hasattr(config, 'not_a_setting'))
    
    def test_reset(self):
        StreamConfig.set_defaults(high_water_mark=1, auto_destroy=False)
        StreamConfig.reset()
        
        self.assertEqual(config.high_water_mark, 16384)
        self.assertTrue(config.auto_destroy)
    
    def test_fixed_high_water_mark(self):
        StreamConfig.set_defaults(high_water_mark=4096)
        self.assertEqual(config.calculate_high_water_mark(), 4096)
    
    def test_memory_based_high_water_mark(self):
        """Memory based marks follow available RAM within bounds."""
        StreamConfig.set_defaults(
            watermark_strategy=WatermarkStrategy.MEMORY_BASED,
            memory_fraction=0.01,
            min_high_water_mark=2048,
            max_high_water_mark=1024 * 1024,
        )
        
        mark = config.calculate_high_water_mark()
        expected = int(psutil.virtual_memory().available * 0.01)
        
        self.assertGreaterEqual(mark, 2048)
        self.assertLessEqual(mark, 1024 * 1024)
        if 2048 <= expected <= 1024 * 1024:
            self.assertAlmostEqual(mark, expected, delta=expected * 0.5)
    
    def test_byte_length(self):
        self.assertEqual(config.byte_length(b"abcd"), 4)
        self.assertEqual(config.byte_length(bytearray(3)), 3)
        self.assertEqual(config.byte_length(memoryview(b"ab")), 2)
        self.assertEqual(config.byte_length("text"), config.object_size)
        self.assertEqual(config.byte_length({"id": 1}), config.object_size)


if __name__ == "__main__":
    unittest.main()
