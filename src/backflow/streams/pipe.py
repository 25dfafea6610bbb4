"""
Coordinated transfer between streams.
"""

import logging
from typing import Any, Callable, List, Optional, Tuple

from backflow.core.events import Subscription
from backflow.errors import PrematureCloseError
from backflow.streams.base import Stream
from backflow.streams.readable import Readable
from backflow.streams.writable import Writable

logger = logging.getLogger(__name__)

Completion = Callable[[Optional[BaseException]], None]


class PipeCoordinator:
    """
    Moves chunks from one readable to one writable.
    
    Backpressure from the destination pauses the source until drain.
    The completion callback is invoked exactly once: with None after the
    destination finished, or with the first error seen on either side.
    """
    
    def __init__(self, source: Readable, destination: Writable,
                 callback: Optional[Completion] = None):
        self.source = source
        self.destination = destination
        self.callback = callback
        self.reported = False
        self._failing = False
        self._subscriptions: List[Tuple[Stream, Subscription]] = []
    
    def start(self) -> Writable:
        """Wire up both streams and start the source flowing."""
        src, dst = self.source, self.destination
        
        # error listeners stay attached so late errors count as handled
        src.on("error", self._fail)
        dst.on("error", self._fail)
        
        self._listen(src, "data", self._on_data)
        self._listen(src, "end", self._on_end)
        self._listen(src, "abort", self._on_source_abort)
        self._listen(dst, "drain", self._on_drain)
        self._listen(dst, "finish", self._on_finish)
        self._listen(dst, "abort", self._on_destination_abort)
        
        src.resume()
        return dst
    
    def _listen(self, stream: Stream, event: str, handler: Callable[..., Any]) -> None:
        self._subscriptions.append((stream, stream.on(event, handler)))
    
    def _detach(self) -> None:
        for stream, subscription in self._subscriptions:
            stream.off(subscription)
        self._subscriptions = []
    
    def _on_data(self, chunk: Any) -> None:
        if not self.destination.write(chunk, self._on_written):
            self.source.pause()
    
    def _on_written(self, err: Optional[BaseException] = None) -> None:
        if err is not None:
            self._fail(err)
    
    def _on_drain(self) -> None:
        if not self.reported:
            self.source.resume()
    
    def _on_end(self) -> None:
        self.destination.end()
    
    def _on_finish(self) -> None:
        self._complete(None)
    
    def _on_source_abort(self, err: Optional[BaseException]) -> None:
        if err is not None:
            self._fail(err)
        elif not self.source.readable_ended:
            self._fail(PrematureCloseError("source destroyed before end"))
    
    def _on_destination_abort(self, err: Optional[BaseException]) -> None:
        if err is not None:
            self._fail(err)
        elif not self.destination.writable_finished:
            self._fail(PrematureCloseError("destination destroyed before finish"))
    
    def _fail(self, err: BaseException) -> None:
        if self.reported or self._failing:
            return
        self._failing = True
        logger.debug("Pipe %r -> %r failed: %r", self.source, self.destination, err)
        if not self.source.destroyed:
            self.source.destroy(err)
        if not self.destination.destroyed:
            self.destination.destroy(err)
        self._complete(err)
    
    def _complete(self, err: Optional[BaseException]) -> None:
        if self.reported:
            return
        self.reported = True
        self._detach()
        if err is None:
            logger.debug("Pipe %r -> %r completed", self.source, self.destination)
        if self.callback is not None:
            self.callback(err)


def pipe(source: Readable, destination: Writable,
         callback: Optional[Completion] = None) -> Writable:
    """Pipe source into destination. Returns destination for chaining."""
    return PipeCoordinator(source, destination, callback).start()


def pipeline(*streams: Stream, callback: Optional[Completion] = None) -> Stream:
    """
    Pipe each stream into the next.
    
    The first error destroys every stream and is reported once; success
    is reported when the last stream finishes. Returns the last stream.
    """
    if len(streams) < 2:
        raise ValueError("pipeline requires at least two streams")
    
    reported = False
    remaining = len(streams) - 1
    
    def report(err: Optional[BaseException]) -> None:
        nonlocal reported
        if reported:
            return
        reported = True
        if callback is not None:
            callback(err)
    
    def on_pair(err: Optional[BaseException]) -> None:
        nonlocal remaining
        if err is not None:
            for stream in streams:
                if not stream.destroyed:
                    stream.destroy(err)
            report(err)
            return
        remaining -= 1
        if remaining == 0:
            report(None)
    
    for source, destination in zip(streams, streams[1:]):
        pipe(source, destination, on_pair)
    return streams[-1]


async def finished(stream: Stream) -> None:
    """
    Wait until stream has ended and/or finished.
    
    Raises the stream's error, or PrematureCloseError if it was destroyed
    first. Returns as soon as destroy() is called, even while a hook is
    still in flight.
    
    Combine with asyncio.wait_for and destroy() for timeouts.
    """
    waiter = stream.loop.create_future()
    
    def settle(err: Optional[BaseException] = None) -> None:
        if waiter.done():
            return
        if err is not None:
            waiter.set_exception(err)
        elif stream.done:
            waiter.set_result(None)
    
    def on_abort(err: Optional[BaseException] = None) -> None:
        err = err or stream.error
        if err is not None:
            settle(err)
        elif stream.done:
            settle()
        else:
            settle(PrematureCloseError())
    
    if stream.destroyed:
        on_abort()
    elif stream.done:
        settle()
    
    subscriptions = [
        stream.on("error", settle),
        stream.on("abort", on_abort),
    ]
    if isinstance(stream, Readable):
        subscriptions.append(stream.on("end", settle))
    if isinstance(stream, Writable):
        subscriptions.append(stream.on("finish", settle))
    
    try:
        await waiter
    finally:
        for subscription in subscriptions:
            stream.off(subscription)


def is_stream(obj: Any) -> bool:
    return isinstance(obj, Stream)


def is_ended(stream: Stream) -> bool:
    """True once every side of stream completed normally."""
    return stream.done


def get_stream_error(stream: Stream) -> Optional[BaseException]:
    return stream.error
