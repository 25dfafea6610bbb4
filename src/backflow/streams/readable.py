"""
Pull-based streams.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Union

from backflow.core.buffer import BufferQueue, END
from backflow.core.hooks import Callback, StreamHooks
from backflow.streams.base import Stream

logger = logging.getLogger(__name__)

# returned by _take when nothing is buffered
_NOTHING = object()


class Readable(Stream):
    """
    A source of chunks fed by push().
    
    The read hook is asked for more data whenever a consumer is waiting
    and the buffer is below its high water mark. A new read cycle starts
    only after the previous one both called back and saw a push.
    """
    
    def __init__(self, hooks=None, **kwargs):
        super().__init__(hooks, **kwargs)
        self._buffer = BufferQueue(self._byte_length)
        self._flowing: Optional[bool] = None
        self._want_read = False
        self._reading = False
        self._pushed = False
        self._need_push = False
        self._readable_pending = False
        self._end_consumed = False
        self._end_emitted = False
        self._waiters: List[asyncio.Future] = []
    
    # Producer side
    
    def push(self, chunk: Any) -> bool:
        """
        Add a chunk, or END, to the buffer.
        
        Returns False once the buffer reached its high water mark; the
        producer should stop pushing until read is called again.
        Raises PushAfterEndError if END was already pushed.
        """
        if self._destroyed:
            return False
        
        if chunk is not END and self._map_readable is not None:
            chunk = self._map_readable(chunk)
        
        was_empty = not self._buffer
        self._buffer.enqueue(chunk)
        self._pushed = True
        self._need_push = False
        if was_empty:
            self._readable_pending = True
        
        self._wake_waiters()
        self._schedule_update()
        
        if chunk is END:
            return False
        return self._buffer.size < self.high_water_mark
    
    def unshift(self, chunk: Any) -> None:
        """Put a chunk back at the front of the buffer."""
        if self._destroyed:
            return
        if not self._buffer:
            self._readable_pending = True
        self._buffer.unshift(chunk)
        self._wake_waiters()
        self._schedule_update()
    
    # Consumer side
    
    def read(self) -> Any:
        """
        Take one buffered chunk.
        
        Returns None when nothing is buffered, and END once when the end
        of the stream is reached.
        """
        if self._destroyed:
            return None
        
        self._want_read = True
        chunk = self._take()
        self._schedule_update()
        return None if chunk is _NOTHING else chunk
    
    def pause(self) -> 'Readable':
        """Stop emitting data events."""
        self._flowing = False
        return self
    
    def resume(self) -> 'Readable':
        """Emit buffered and future chunks as data events."""
        if self._destroyed:
            return self
        self._flowing = True
        self._want_read = True
        self._schedule_update()
        return self
    
    def is_paused(self) -> bool:
        return not self._flowing
    
    @property
    def readable_length(self) -> int:
        return self._buffer.size
    
    @property
    def readable_ended(self) -> bool:
        return self._end_emitted
    
    def pipe(self, destination, callback: Optional[Callable] = None):
        """Pipe this stream into destination. Returns destination."""
        from backflow.streams.pipe import pipe
        return pipe(self, destination, callback)
    
    # Async iteration
    
    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iterate()
    
    async def _iterate(self) -> AsyncIterator[Any]:
        completed = False
        self._want_read = True
        try:
            while True:
                chunk = self._take()
                if chunk is END:
                    completed = True
                    return
                if chunk is not _NOTHING:
                    yield chunk
                    continue
                
                if self._destroyed:
                    if self._error is not None:
                        raise self._error
                    return
                if self._end_consumed:
                    completed = True
                    return
                
                self._schedule_update()
                await self._wait_for_data()
        finally:
            if not completed and not self._destroyed:
                self.destroy()
    
    async def collect(self) -> List[Any]:
        """Collect all chunks into a list."""
        return [chunk async for chunk in self]
    
    def _wait_for_data(self) -> asyncio.Future:
        waiter = self.loop.create_future()
        self._waiters.append(waiter)
        return waiter
    
    def _wake_waiters(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
    
    # Internals
    
    def _subscribed(self, event: str) -> None:
        if event == "data":
            if self._flowing is None:
                self.resume()
        elif event == "readable":
            self._want_read = True
            if self._buffer:
                self._readable_pending = True
            if not self._destroyed:
                self._schedule_update()
        super()._subscribed(event)
    
    def _take(self) -> Any:
        if not self._buffer:
            return _NOTHING
        chunk = self._buffer.dequeue()
        if chunk is END:
            self._end_consumed = True
            self._schedule_update()
        return chunk
    
    def _can_read(self) -> bool:
        return (not self._destroyed
                and not self._reading
                and not self._need_push
                and not self._buffer.ended
                and (self._flowing or self._want_read)
                and self._buffer.size < self.high_water_mark)
    
    def _start_read(self) -> None:
        self._reading = True
        self._pushed = False
        self._call_hook("read", self._read, done=self._after_read)
    
    def _after_read(self, err: Optional[BaseException]) -> None:
        self._reading = False
        if err is not None:
            self.destroy(err)
            return
        if not self._pushed:
            self._need_push = True
        self._schedule_update()
    
    def _read(self, cb: Callback) -> None:
        self._hooks.read(self, cb)
    
    def _update(self) -> None:
        self._update_readable()
        super()._update()
    
    def _update_readable(self) -> None:
        while self._can_read():
            size = self._buffer.size
            self._start_read()
            if self._reading or self._need_push:
                break
            if self._buffer.size == size and not self._buffer.ended:
                self._schedule_update()
                break
        
        if self._flowing:
            self._readable_pending = False
            while self._flowing and not self._destroyed:
                chunk = self._take()
                if chunk is _NOTHING or chunk is END:
                    break
                self._publish("data", chunk)
        elif self._readable_pending and self._buffer and not self._destroyed:
            self._readable_pending = False
            self._publish("readable")
        
        if self._end_consumed and not self._end_emitted and not self._destroyed:
            self._end_emitted = True
            logger.debug("End of %r", self)
            self._publish("end")
            self._maybe_finish()
            return
        
        if self._flowing and self._can_read():
            self._schedule_update()
    
    def _idle(self) -> bool:
        return not self._reading and super()._idle()
    
    def _done(self) -> bool:
        return self._end_emitted and super()._done()
    
    def _abort(self, err: Optional[BaseException]) -> None:
        self._buffer.clear()
        self._wake_waiters()
        super()._abort(err)
    
    # Factory methods
    
    @classmethod
    def from_iterable(cls, iterable: Union[Iterable[Any], AsyncIterator[Any]], **kwargs) -> 'Readable':
        """Create a readable stream over a sync or async iterable."""
        if hasattr(iterable, '__aiter__'):
            return cls(_AsyncIterableHooks(iterable), **kwargs)
        return cls(_IterableHooks(iterable), **kwargs)


class _IterableHooks(StreamHooks):
    """Read hook pulling from a synchronous iterator."""
    
    def __init__(self, iterable: Iterable[Any]):
        self._iterator = iter(iterable)
    
    def read(self, stream: Readable, cb: Callback) -> None:
        try:
            chunk = next(self._iterator)
        except StopIteration:
            stream.push(END)
        else:
            stream.push(chunk)
        cb(None)
    
    def destroy(self, stream: Readable, err, cb: Callback) -> None:
        close = getattr(self._iterator, 'close', None)
        if close is not None:
            close()
        cb(None)


class _AsyncIterableHooks(StreamHooks):
    """Read hook pulling from an asynchronous iterator."""
    
    def __init__(self, iterable: AsyncIterator[Any]):
        self._iterator = iterable.__aiter__()
        self._tasks = set()
    
    def read(self, stream: Readable, cb: Callback) -> None:
        self._spawn(stream, self._pull(stream, cb))
    
    def _spawn(self, stream: Readable, coro) -> None:
        task = stream.loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
    
    async def _pull(self, stream: Readable, cb: Callback) -> None:
        try:
            chunk = await self._iterator.__anext__()
        except StopAsyncIteration:
            stream.push(END)
        except Exception as exc:
            cb(exc)
            return
        else:
            stream.push(chunk)
        cb(None)
    
    async def _close(self, cb: Callback) -> None:
        try:
            await self._iterator.aclose()
        except Exception as exc:
            cb(exc)
            return
        cb(None)
    
    def destroy(self, stream: Readable, err, cb: Callback) -> None:
        if hasattr(self._iterator, 'aclose'):
            self._spawn(stream, self._close(cb))
        else:
            cb(None)
