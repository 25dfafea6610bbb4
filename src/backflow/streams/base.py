"""
Lifecycle shared by every stream: scheduling, hook dispatch, destroy/close.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from backflow.config import config
from backflow.core.events import EventHub, Subscription
from backflow.core.hooks import StreamHooks, resolve_hooks
from backflow.errors import DoubleCallbackError, as_exception

logger = logging.getLogger(__name__)


class HookCallback:
    """
    Completion callback handed to a hook.
    
    Only the first invocation is applied. Later ones are logged and
    ignored, or raise DoubleCallbackError when the stream is strict.
    """
    
    __slots__ = ("stream", "hook", "called", "_done")
    
    def __init__(self, stream: 'Stream', hook: str, done: Callable[[Optional[BaseException]], None]):
        self.stream = stream
        self.hook = hook
        self.called = False
        self._done = done
    
    def __call__(self, err: Any = None) -> None:
        if self.called:
            self.repeated()
            return
        self.called = True
        self._done(None if err is None else as_exception(self.hook, err))
    
    def repeated(self) -> None:
        """Report a callback invoked more than once."""
        if self.stream.strict_callbacks:
            raise DoubleCallbackError(self.hook)
        logger.warning("Ignoring repeated %s callback on %r", self.hook, self.stream)


class Stream:
    """
    Base class for readable and writable streams.
    
    All work is coalesced into update units scheduled on the event loop.
    Subclasses extend _update, _idle, _done and _abort cooperatively.
    """
    
    def __init__(self,
                 hooks: Optional[StreamHooks] = None,
                 *,
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 high_water_mark: Optional[int] = None,
                 byte_length: Optional[Callable[[Any], int]] = None,
                 map: Optional[Callable[[Any], Any]] = None,
                 map_readable: Optional[Callable[[Any], Any]] = None,
                 map_writable: Optional[Callable[[Any], Any]] = None,
                 auto_destroy: Optional[bool] = None,
                 strict_callbacks: Optional[bool] = None,
                 **hook_functions: Callable):
        """
        Initialize stream.
        
        Args:
            hooks: Hooks object implementing the backend
            loop: Event loop to schedule on (default: the running loop)
            high_water_mark: Buffered size at which backpressure starts
            byte_length: Function giving the size of a chunk
            map: Function applied to every chunk entering the stream
            map_readable: Overrides map for pushed chunks
            map_writable: Overrides map for written chunks
            auto_destroy: Destroy once the stream has ended/finished
            strict_callbacks: Raise on repeated hook callbacks
            **hook_functions: Individual hooks (read=, write=, ...)
        """
        self._hooks = resolve_hooks(hooks, hook_functions)
        self._loop = loop
        self._hub = EventHub()
        
        if high_water_mark is None:
            high_water_mark = config.calculate_high_water_mark()
        self.high_water_mark = high_water_mark
        self._byte_length = byte_length or config.byte_length
        self._map_readable = map_readable or map
        self._map_writable = map_writable or map
        self.auto_destroy = config.auto_destroy if auto_destroy is None else auto_destroy
        self.strict_callbacks = (config.strict_callbacks if strict_callbacks is None
                                 else strict_callbacks)
        
        self._update_scheduled = False
        self._destroyed = False
        self._destroy_started = False
        self._closed = False
        self._error: Optional[BaseException] = None
    
    def __repr__(self) -> str:
        if self._closed:
            state = "closed"
        elif self._destroyed:
            state = "destroying"
        else:
            state = "open"
        return f"<{type(self).__name__} {state}>"
    
    # Events
    
    def on(self, event: str, handler: Callable[..., Any]) -> Subscription:
        """Subscribe handler to event."""
        subscription = self._hub.subscribe(event, handler)
        self._subscribed(event)
        return subscription
    
    def once(self, event: str, handler: Callable[..., Any]) -> Subscription:
        """Subscribe handler to the next occurrence of event."""
        subscription = self._hub.subscribe_once(event, handler)
        self._subscribed(event)
        return subscription
    
    def off(self, subscription: Subscription) -> bool:
        """Remove a subscription."""
        return self._hub.unsubscribe(subscription)
    
    def listener_count(self, event: str) -> int:
        return self._hub.subscriber_count(event)
    
    def _subscribed(self, event: str) -> None:
        pass
    
    def _publish(self, event: str, *args: Any) -> int:
        return self._hub.publish(event, *args)
    
    # State
    
    @property
    def destroyed(self) -> bool:
        return self._destroyed
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    @property
    def error(self) -> Optional[BaseException]:
        return self._error
    
    @property
    def done(self) -> bool:
        """True once every side of the stream completed normally."""
        return self._done()
    
    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop
    
    # Teardown
    
    def destroy(self, err: Optional[BaseException] = None) -> None:
        """
        Tear the stream down.
        
        Idempotent. Pending work is failed and abort is published at
        once, even while a hook is in flight. The destroy hook runs once
        no other hook is in flight, then error and close are published.
        """
        if self._destroyed:
            return
        
        self._destroyed = True
        if err is not None:
            self._error = err
        logger.debug("Destroying %r (error=%r)", self, err)
        
        self._abort(err)
        self._publish("abort", err)
        self._schedule_update()
    
    def _abort(self, err: Optional[BaseException]) -> None:
        """Fail pending work after destroy. Extended by each side."""
        pass
    
    def _after_destroy(self, err: Optional[BaseException]) -> None:
        if err is not None and self._error is None:
            self._error = err
        
        if self._error is not None:
            if not self._publish("error", self._error):
                logger.warning("Unhandled error on %r: %r", self, self._error)
        
        self._closed = True
        logger.debug("Closed %r", self)
        self._publish("close")
    
    def _maybe_finish(self) -> None:
        if self.auto_destroy and not self._destroyed and self._done():
            self.destroy()
    
    # Scheduling
    
    def _schedule_update(self) -> None:
        if self._update_scheduled or self._closed:
            return
        self._update_scheduled = True
        self.loop.call_soon(self._run_update)
    
    def _run_update(self) -> None:
        self._update_scheduled = False
        
        if self._destroyed:
            if not self._destroy_started and self._idle():
                self._destroy_started = True
                self._call_hook("destroy", self._destroy, self._error,
                                done=self._after_destroy)
            return
        
        self._update()
    
    def _update(self) -> None:
        pass
    
    def _idle(self) -> bool:
        """True when no hook is in flight."""
        return True
    
    def _done(self) -> bool:
        """True when every side has completed normally."""
        return True
    
    # Hooks
    
    def _call_hook(self, name: str, method: Callable, *args: Any,
                   done: Callable[[Optional[BaseException]], None]) -> None:
        """Invoke a hook method with a guarded completion callback."""
        cb = HookCallback(self, name, done)
        try:
            method(*args, cb)
        except Exception as exc:
            if cb.called:
                self.destroy(exc)
            else:
                cb(exc)
    
    def _destroy(self, err: Optional[BaseException], cb: Callable) -> None:
        self._hooks.destroy(self, err, cb)
