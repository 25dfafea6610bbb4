"""
Backflow: composable streams with automatic backpressure.

Readable sources, writable sinks and transforms are driven by hooks
supplied by an I/O backend. Piping couples a source to a sink, pausing
the source while the sink is saturated and reporting completion once.
"""

from backflow.config import StreamConfig, WatermarkStrategy, WriteErrorPolicy
from backflow.core import EventHub, Subscription, BufferQueue, END, StreamHooks, FunctionHooks
from backflow.streams import (
    Stream,
    Readable,
    Writable,
    Duplex,
    Transform,
    PassThrough,
    PipeCoordinator,
    pipe,
    pipeline,
    finished,
    is_stream,
    is_ended,
    get_stream_error,
)
from backflow.errors import (
    StreamError,
    HookError,
    PushAfterEndError,
    DoubleCallbackError,
    OperationOnDestroyedError,
    StreamAbortedError,
    PrematureCloseError,
)

__version__ = "0.1.0"
__license__ = "Apache-2.0"

__all__ = [
    "StreamConfig",
    "WatermarkStrategy",
    "WriteErrorPolicy",
    "EventHub",
    "Subscription",
    "BufferQueue",
    "END",
    "StreamHooks",
    "FunctionHooks",
    "Stream",
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
    "StreamError",
    "HookError",
    "PushAfterEndError",
    "DoubleCallbackError",
    "OperationOnDestroyedError",
    "StreamAbortedError",
    "PrematureCloseError",
]
