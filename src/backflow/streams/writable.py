"""
Writable streams: a single-writer queue drained through the write hook.
"""

import logging
from collections import deque
from typing import Any, Callable, Deque, List, Optional, Tuple

from backflow.config import config, WriteErrorPolicy
from backflow.core.hooks import Callback
from backflow.errors import (
    OperationOnDestroyedError,
    PushAfterEndError,
    StreamAbortedError,
)
from backflow.streams.base import Stream

logger = logging.getLogger(__name__)


class Writable(Stream):
    """
    A sink that hands queued chunks to the write hook one at a time.
    
    The open hook completes before the first write. After end() the
    queue drains, the final hook runs once and finish is published.
    """
    
    # name reported for the hook that consumes chunks
    write_hook = "write"
    
    def __init__(self, hooks=None, *, write_error_policy: Optional[WriteErrorPolicy] = None, **kwargs):
        super().__init__(hooks, **kwargs)
        if write_error_policy is None:
            write_error_policy = config.write_error_policy
        self.write_error_policy = WriteErrorPolicy(write_error_policy)
        
        self._queue: Deque[Tuple[Any, int, Optional[Callback]]] = deque()
        self._queued_size = 0
        self._writing = False
        self._opened = False
        self._ending = False
        self._finishing = False
        self._finished = False
        self._need_drain = False
        self._end_callbacks: List[Callback] = []
    
    def write(self, chunk: Any, callback: Optional[Callback] = None) -> bool:
        """
        Queue a chunk for the write hook.
        
        The callback fires exactly once, after the hook completed that
        chunk, or with an error if the stream is ending or destroyed.
        Returns False when the caller should wait for drain.
        """
        if self._destroyed:
            self._fail(callback, self._error or OperationOnDestroyedError("write after destroy"))
            return False
        if self._ending:
            self._fail(callback, PushAfterEndError("write after end"))
            return False
        
        if self._map_writable is not None:
            chunk = self._map_writable(chunk)
        
        size = self._byte_length(chunk)
        self._queue.append((chunk, size, callback))
        self._queued_size += size
        
        ok = self._queued_size < self.high_water_mark
        if not ok:
            self._need_drain = True
        self._schedule_update()
        return ok
    
    def end(self, callback: Optional[Callback] = None) -> 'Writable':
        """Stop accepting writes; finish once the queue has drained."""
        if callback is not None:
            if self._finished:
                self.loop.call_soon(callback, None)
            elif self._destroyed:
                self._fail(callback, self._error or OperationOnDestroyedError("end after destroy"))
            else:
                self._end_callbacks.append(callback)
        
        if self._ending or self._destroyed:
            return self
        
        self._ending = True
        self._schedule_update()
        return self
    
    @property
    def writable_length(self) -> int:
        return self._queued_size
    
    @property
    def writable_ended(self) -> bool:
        return self._ending
    
    @property
    def writable_finished(self) -> bool:
        return self._finished
    
    @property
    def need_drain(self) -> bool:
        return self._need_drain
    
    def _fail(self, callback: Optional[Callback], err: BaseException) -> None:
        if callback is not None:
            self.loop.call_soon(callback, err)
    
    # Hook dispatch
    
    def _open(self, cb: Callback) -> None:
        self._hooks.open(self, cb)
    
    def _write(self, chunk: Any, cb: Callback) -> None:
        self._hooks.write(self, chunk, cb)
    
    def _final(self, cb: Callback) -> None:
        self._hooks.final(self, cb)
    
    def _update(self) -> None:
        self._update_writable()
        super()._update()
    
    def _update_writable(self) -> None:
        while not self._writing and not self._destroyed:
            if not self._opened:
                if not self._queue and not self._ending:
                    return
                self._writing = True
                self._call_hook("open", self._open, done=self._after_open)
            elif self._queue:
                chunk, size, callback = self._queue.popleft()
                self._writing = True
                self._call_hook(self.write_hook, self._write, chunk,
                                done=lambda err, size=size, callback=callback:
                                self._after_write(size, callback, err))
            elif self._ending and not self._finishing:
                self._finishing = True
                self._writing = True
                self._call_hook("final", self._final, done=self._after_final)
            else:
                return
    
    def _after_open(self, err: Optional[BaseException]) -> None:
        self._writing = False
        if err is not None:
            self.destroy(err)
            return
        self._opened = True
        logger.debug("Opened %r", self)
        self._schedule_update()
    
    def _after_write(self, size: int, callback: Optional[Callback],
                     err: Optional[BaseException]) -> None:
        self._writing = False
        self._queued_size -= size
        
        if callback is not None:
            callback(err)
        
        if err is not None:
            logger.debug("%s hook failed on %r: %r", self.write_hook, self, err)
            if self.write_error_policy == WriteErrorPolicy.DESTROY:
                self.destroy(err)
        
        if self._destroyed:
            self._schedule_update()
            return
        
        if self._need_drain and not self._queue:
            self._need_drain = False
            self._publish("drain")
        self._schedule_update()
    
    def _after_final(self, err: Optional[BaseException]) -> None:
        self._writing = False
        if err is not None:
            self.destroy(err)
            return
        if self._destroyed:
            self._schedule_update()
            return
        
        self._finished = True
        logger.debug("Finished %r", self)
        callbacks, self._end_callbacks = self._end_callbacks, []
        self._publish("finish")
        for callback in callbacks:
            callback(None)
        self._maybe_finish()
    
    def _idle(self) -> bool:
        return not self._writing and super()._idle()
    
    def _done(self) -> bool:
        return self._finished and super()._done()
    
    def _abort(self, err: Optional[BaseException]) -> None:
        reason = err or StreamAbortedError()
        pending, self._queue = self._queue, deque()
        callbacks, self._end_callbacks = self._end_callbacks, []
        self._queued_size -= sum(size for _, size, _ in pending)
        
        for _, _, callback in pending:
            if callback is not None:
                callback(reason)
        for callback in callbacks:
            callback(reason)
        super()._abort(err)
