"""Error types for the iteration kernel."""

from __future__ import annotations

from typing import Any


class ConvoyError(Exception):
    """Base class for all convoy errors.

    Keyword context is kept on the instance and rendered by ``str()``.
    """

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


class IterationError(ConvoyError):
    """An element reported an error and the iteration was short-circuited.

    Raised by the awaitable form of the combinators. ``reason`` is the error
    value the element reported (not necessarily an exception) and ``partial``
    is the result container as it stood when the error was observed.
    """

    def __init__(self, reason: Any, partial: Any = None) -> None:
        super().__init__("iteration aborted by element error", reason=reason)
        self.reason = reason
        self.partial = partial

    def __repr__(self) -> str:
        return f"IterationError(reason={self.reason!r}, partial={self.partial!r})"


class CallbackAlreadyCalledError(ConvoyError):
    """A completion callback was invoked after it had already fired.

    This is a protocol violation by the caller's code. It is reported on the
    event loop's exception handler and never delivered to a result callback.
    """

    def __init__(self, callback: str, calls: int) -> None:
        super().__init__("callback was already called", callback=callback, calls=calls)
        self.callback = callback
        self.calls = calls
