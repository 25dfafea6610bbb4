"""Building blocks shared by every stream type."""

from backflow.core.events import EventHub, Subscription
from backflow.core.buffer import BufferQueue, Marker, END
from backflow.core.hooks import StreamHooks, FunctionHooks, HOOK_NAMES

__all__ = [
    "EventHub",
    "Subscription",
    "BufferQueue",
    "Marker",
    "END",
    "StreamHooks",
    "FunctionHooks",
    "HOOK_NAMES",
]
