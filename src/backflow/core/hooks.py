"""
Hook contract between streams and the I/O backends that feed them.

Every hook receives the stream first and a completion callback last.
The callback takes an optional error; calling it with None (or nothing)
reports success.
"""

from typing import Any, Callable, Dict, Optional

Callback = Callable[..., None]

HOOK_NAMES = ("open", "read", "write", "transform", "flush", "final", "destroy")


class StreamHooks:
    """Default hooks. Override the ones a backend needs."""
    
    def open(self, stream, cb: Callback) -> None:
        """Acquire resources before the first write."""
        cb(None)
    
    def read(self, stream, cb: Callback) -> None:
        """Produce data with stream.push(), then call cb."""
        cb(None)
    
    def write(self, stream, chunk: Any, cb: Callback) -> None:
        """Consume one chunk, then call cb."""
        cb(None)
    
    def transform(self, stream, chunk: Any, cb: Callback) -> None:
        """Push zero or more outputs for chunk, then call cb."""
        stream.push(chunk)
        cb(None)
    
    def flush(self, stream, cb: Callback) -> None:
        """Push trailing output before a transform's read side ends."""
        cb(None)
    
    def final(self, stream, cb: Callback) -> None:
        """Runs once after the last write completes following end()."""
        cb(None)
    
    def destroy(self, stream, err: Optional[BaseException], cb: Callback) -> None:
        """Release resources on teardown."""
        cb(None)


class FunctionHooks(StreamHooks):
    """Hooks built from plain callables, falling back to another hooks object."""
    
    def __init__(self, fallback: Optional[StreamHooks] = None, **functions: Callable):
        unknown = set(functions) - set(HOOK_NAMES)
        if unknown:
            raise TypeError(f"Unknown hooks: {', '.join(sorted(unknown))}")
        self._fallback = fallback or StreamHooks()
        self._functions: Dict[str, Callable] = {
            name: fn for name, fn in functions.items() if fn is not None
        }
    
    def open(self, stream, cb):
        self._dispatch("open", stream, cb)
    
    def read(self, stream, cb):
        self._dispatch("read", stream, cb)
    
    def write(self, stream, chunk, cb):
        self._dispatch("write", stream, chunk, cb)
    
    def transform(self, stream, chunk, cb):
        self._dispatch("transform", stream, chunk, cb)
    
    def flush(self, stream, cb):
        self._dispatch("flush", stream, cb)
    
    def final(self, stream, cb):
        self._dispatch("final", stream, cb)
    
    def destroy(self, stream, err, cb):
        self._dispatch("destroy", stream, err, cb)
    
    def _dispatch(self, name: str, *args) -> None:
        fn = self._functions.get(name)
        if fn is None:
            fn = getattr(self._fallback, name)
        fn(*args)


def resolve_hooks(hooks: Optional[StreamHooks], functions: Dict[str, Callable]) -> StreamHooks:
    """Combine a hooks object with keyword hook functions."""
    functions = {name: fn for name, fn in functions.items() if fn is not None}
    if not functions:
        return hooks or StreamHooks()
    return FunctionHooks(hooks, **functions)
