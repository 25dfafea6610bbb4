"""Readable, writable and transform streams with automatic backpressure."""

from backflow.streams.base import Stream, HookCallback
from backflow.streams.readable import Readable
from backflow.streams.writable import Writable
from backflow.streams.duplex import Duplex, Transform, PassThrough
from backflow.streams.pipe import (
    PipeCoordinator,
    pipe,
    pipeline,
    finished,
    is_stream,
    is_ended,
    get_stream_error,
)

__all__ = [
    "Stream",
    "HookCallback",
    "Readable",
    "Writable",
    "Duplex",
    "Transform",
    "PassThrough",
    "PipeCoordinator",
    "pipe",
    "pipeline",
    "finished",
    "is_stream",
    "is_ended",
    "get_stream_error",
]
