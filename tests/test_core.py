#!/usr/bin/env python3
"""
Tests for the event hub, chunk buffer and hook helpers.
"""

import unittest
from backflow import EventHub, BufferQueue, END, StreamHooks, FunctionHooks, PushAfterEndError


class TestEventHub(unittest.TestCase):
    """Test synchronous publish/subscribe."""
    
    def setUp(self):
        self.hub = EventHub()
        self.calls = []
    
    def test_publish_in_registration_order(self):
        """Handlers run in the order they subscribed."""
        self.hub.subscribe("data", lambda x: self.calls.append(("a", x)))
        self.hub.subscribe("data", lambda x: self.calls.append(("b", x)))
        
        called = self.hub.publish("data", 1)
        
        self.assertEqual(called, 2)
        self.assertEqual(self.calls, [("a", 1), ("b", 1)])
    
    def test_publish_without_subscribers(self):
        self.assertEqual(self.hub.publish("nothing"), 0)
    
    def test_subscribe_once(self):
        """Once handlers fire a single time."""
        self.hub.subscribe_once("end", lambda: self.calls.append("end"))
        
        self.hub.publish("end")
        self.hub.publish("end")
        
        self.assertEqual(self.calls, ["end"])
        self.assertEqual(self.hub.subscriber_count("end"), 0)
    
    def test_unsubscribe(self):
        sub = self.hub.subscribe("data", self.calls.append)
        
        self.assertTrue(self.hub.unsubscribe(sub))
        self.assertFalse(self.hub.unsubscribe(sub))
        self.hub.publish("data", 1)
        self.assertEqual(self.calls, [])
    
    def test_dispatch_uses_snapshot(self):
        """Changes made during a dispatch apply from the next one."""
        late = []
        
        def first():
            self.calls.append("first")
            self.hub.unsubscribe(second_sub)
            self.hub.subscribe("tick", lambda: late.append("late"))
        
        def second():
            self.calls.append("second")
        
        self.hub.subscribe("tick", first)
        second_sub = self.hub.subscribe("tick", second)
        
        self.hub.publish("tick")
        self.assertEqual(self.calls, ["first", "second"])
        self.assertEqual(late, [])
        
        self.hub.publish("tick")
        self.assertEqual(self.calls, ["first", "second", "first"])
        self.assertEqual(late, ["late"])
    
    def test_nested_publish_fires_once_handler_once(self):
        def handler():
            self.calls.append("once")
            self.hub.publish("ready")
        
        self.hub.subscribe_once("ready", handler)
        self.hub.publish("ready")
        
        self.assertEqual(self.calls, ["once"])
    
    def test_clear(self):
        self.hub.subscribe("a", self.calls.append)
        self.hub.subscribe("b", self.calls.append)
        
        self.hub.clear("a")
        self.assertEqual(self.hub.subscriber_count(), 1)
        
        self.hub.clear()
        self.assertEqual(self.hub.subscriber_count(), 0)


class TestBufferQueue(unittest.TestCase):
    """Test the chunk FIFO."""
    
    def setUp(self):
        self.queue = BufferQueue(len)
    
    def test_fifo_order_and_size(self):
        self.queue.enqueue(b"abc")
        self.queue.enqueue(b"de")
        
        self.assertEqual(self.queue.size, 5)
        self.assertEqual(self.queue.dequeue(), b"abc")
        self.assertEqual(self.queue.size, 2)
        self.assertEqual(self.queue.dequeue(), b"de")
        self.assertEqual(self.queue.size, 0)
    
    def test_end_marker_is_terminal(self):
        """Nothing can be enqueued after END, and END has no size."""
        self.queue.enqueue(b"x")
        self.queue.enqueue(END)
        
        self.assertTrue(self.queue.ended)
        self.assertEqual(self.queue.size, 1)
        self.assertEqual(len(self.queue), 2)
        
        with self.assertRaises(PushAfterEndError):
            self.queue.enqueue(b"y")
        
        self.assertEqual(self.queue.dequeue(), b"x")
        self.assertIs(self.queue.dequeue(), END)
    
    def test_dequeue_empty(self):
        self.assertFalse(self.queue)
        with self.assertRaises(IndexError):
            self.queue.dequeue()
    
    def test_unshift(self):
        self.queue.enqueue(b"b")
        self.queue.unshift(b"a")
        
        self.assertEqual(self.queue.peek(), b"a")
        self.assertEqual(self.queue.size, 2)
    
    def test_payloads_never_equal_end(self):
        for value in (None, 0, "", "end", b"", False):
            self.assertIsNot(value, END)
            self.assertNotEqual(value, END)


class TestHooks(unittest.TestCase):
    """Test hook resolution."""
    
    def test_default_hooks_succeed(self):
        results = []
        hooks = StreamHooks()
        
        hooks.open(None, results.append)
        hooks.read(None, results.append)
        hooks.final(None, results.append)
        hooks.destroy(None, None, results.append)
        
        self.assertEqual(results, [None, None, None, None])
    
    def test_function_hooks_fall_back(self):
        class Source(StreamHooks):
            def read(self, stream, cb):
                cb("fallback")
        
        calls = []
        hooks = FunctionHooks(Source(), final=lambda stream, cb: cb("function"))
        
        hooks.read(None, calls.append)
        hooks.final(None, calls.append)
        hooks.write(None, b"x", calls.append)
        
        self.assertEqual(calls, ["fallback", "function", None])
    
    def test_unknown_hook_rejected(self):
        with self.assertRaises(TypeError):
            FunctionHooks(reed=lambda stream, cb: None)


if __name__ == "__main__":
    unittest.main()
