"""Exceptions raised or reported by streams."""


class StreamError(Exception):
    """Base class for stream errors."""
    pass


class HookError(StreamError):
    """A hook reported a failure that was not itself an exception."""
    
    def __init__(self, hook: str, reason=None):
        self.hook = hook
        self.reason = reason
        super().__init__(f"{hook} hook failed: {reason!r}")


class PushAfterEndError(StreamError):
    """Data was pushed or written after the end of the stream."""
    
    def __init__(self, message: str = "push after end of stream"):
        super().__init__(message)


class DoubleCallbackError(StreamError):
    """A hook invoked its completion callback more than once."""
    
    def __init__(self, hook: str):
        self.hook = hook
        super().__init__(f"{hook} callback invoked more than once")


class OperationOnDestroyedError(StreamError):
    """An operation was attempted on a destroyed stream."""
    
    def __init__(self, message: str = "stream was destroyed"):
        super().__init__(message)


class StreamAbortedError(OperationOnDestroyedError):
    """Pending work was cancelled because the stream was destroyed."""
    
    def __init__(self, message: str = "stream was aborted"):
        super().__init__(message)


class PrematureCloseError(StreamError):
    """A stream closed before it ended or finished."""
    
    def __init__(self, message: str = "premature close"):
        super().__init__(message)


def as_exception(hook: str, err) -> BaseException:
    """Normalize a callback failure value into an exception."""
    if isinstance(err, BaseException):
        return err
    return HookError(hook, err)
