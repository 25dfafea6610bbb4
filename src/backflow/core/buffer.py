"""Ordered chunk buffer with a terminal end-of-stream marker."""

from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Union

from backflow.errors import PushAfterEndError


class Marker(Enum):
    """Stream control markers that can never collide with payload data."""
    END = "end"
    
    def __repr__(self) -> str:
        return f"<{self.name}>"


END = Marker.END

Chunk = Union[Any, Marker]


class BufferQueue:
    """
    FIFO of pending chunks.
    
    Once END has been enqueued nothing else may follow it. The tracked
    size covers payload chunks only.
    """
    
    def __init__(self, byte_length: Callable[[Any], int]):
        self._items: Deque[Chunk] = deque()
        self._byte_length = byte_length
        self.size = 0
        self.ended = False
    
    def enqueue(self, chunk: Chunk) -> int:
        """Append chunk (or END). Returns the new size."""
        if self.ended:
            raise PushAfterEndError()
        self._items.append(chunk)
        if chunk is END:
            self.ended = True
        else:
            self.size += self._byte_length(chunk)
        return self.size
    
    def unshift(self, chunk: Any) -> int:
        """Put a payload chunk back at the head of the queue."""
        self._items.appendleft(chunk)
        self.size += self._byte_length(chunk)
        return self.size
    
    def dequeue(self) -> Chunk:
        """Remove and return the next chunk. Raises IndexError when empty."""
        chunk = self._items.popleft()
        if chunk is not END:
            self.size -= self._byte_length(chunk)
        return chunk
    
    def peek(self) -> Chunk:
        return self._items[0]
    
    def clear(self) -> None:
        """Drop buffered payload, keeping the ended flag."""
        self._items.clear()
        self.size = 0
    
    def __len__(self) -> int:
        return len(self._items)
    
    def __bool__(self) -> bool:
        return bool(self._items)
