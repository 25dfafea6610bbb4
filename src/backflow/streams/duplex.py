"""
Streams that are both readable and writable.
"""

from typing import Any, Optional

from backflow.core.buffer import END
from backflow.core.hooks import Callback
from backflow.errors import StreamAbortedError
from backflow.streams.base import HookCallback
from backflow.streams.readable import Readable
from backflow.streams.writable import Writable


class Duplex(Readable, Writable):
    """
    Independent read and write sides sharing one lifecycle.
    
    The stream auto-destroys only after the read side ended and the
    write side finished.
    """
    pass


class Transform(Duplex):
    """
    A duplex whose read side is produced from its write side.
    
    Each written chunk goes through the transform hook, which may push
    any number of outputs before calling back. While the read side is
    over its high water mark the next write is held back. Ending the
    write side runs the flush hook and then ends the read side.
    """
    
    write_hook = "transform"
    
    def __init__(self, hooks=None, **kwargs):
        super().__init__(hooks, **kwargs)
        self._held: Optional[Callback] = None
    
    def _write(self, chunk: Any, cb: HookCallback) -> None:
        called = False
        
        def done(err: Any = None) -> None:
            nonlocal called
            # cb may still be held, so repeats never reach it
            if called:
                cb.repeated()
                return
            called = True
            self._after_transform(cb, err)
        
        self._hooks.transform(self, chunk, done)
    
    def _after_transform(self, cb: Callback, err: Any) -> None:
        if err is None and not self._destroyed and self._buffer.size >= self.high_water_mark:
            self._held = cb
            return
        cb(err)
    
    def _read(self, cb: Callback) -> None:
        held, self._held = self._held, None
        if held is not None:
            held(None)
        cb(None)
    
    def _final(self, cb: Callback) -> None:
        self._call_hook("flush", self._flush, done=lambda err: self._after_flush(cb, err))
    
    def _flush(self, cb: Callback) -> None:
        self._hooks.flush(self, cb)
    
    def _after_flush(self, cb: Callback, err: Optional[BaseException]) -> None:
        if err is None and not self._destroyed:
            self.push(END)
        cb(err)
    
    def _abort(self, err: Optional[BaseException]) -> None:
        held, self._held = self._held, None
        super()._abort(err)
        if held is not None:
            held(err or StreamAbortedError())


class PassThrough(Transform):
    """A transform that forwards every chunk unchanged."""
    pass
