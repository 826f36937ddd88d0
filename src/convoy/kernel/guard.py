"""Completion guard - an arm-once wrapper around a completion callback."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from convoy.kernel.errors import CallbackAlreadyCalledError

logger = logging.getLogger(__name__)

ViolationHandler = Callable[[CallbackAlreadyCalledError], None]


def current_loop() -> asyncio.AbstractEventLoop | None:
    """Return the running event loop, or None outside of one."""
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def report_violation(
    exc: CallbackAlreadyCalledError,
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    """Report a protocol violation on the loop's exception handler.

    The handler is invoked on the next loop turn so the caller's control
    flow is never interrupted. Without a usable loop the violation is logged.
    """
    report_exception(exc, loop, message=f"convoy: {exc}", callback_name=exc.callback)


def report_exception(
    exc: BaseException,
    loop: asyncio.AbstractEventLoop | None = None,
    *,
    message: str,
    **context: Any,
) -> None:
    """Hand ``exc`` to the loop's exception handler on the next turn.

    Used for errors that can no longer reach a completion callback.
    """
    loop = loop or current_loop()
    if loop is None or loop.is_closed():
        logger.error("%s", message, exc_info=exc)
        return
    loop.call_soon(
        loop.call_exception_handler,
        {"message": message, "exception": exc, **context},
    )


class CompletionGuard:
    """Callable that forwards its first invocation and rejects the rest.

    Every call after the first is turned into a ``CallbackAlreadyCalledError``
    and handed to ``on_violation`` (or ``report_violation`` by default); the
    wrapped callback never sees it.
    """

    __slots__ = ("name", "_on_fire", "_on_violation", "_loop", "_fired", "_calls")

    def __init__(
        self,
        on_fire: Callable[..., Any] | None,
        *,
        name: str = "callback",
        loop: asyncio.AbstractEventLoop | None = None,
        on_violation: ViolationHandler | None = None,
    ) -> None:
        self.name = name
        self._on_fire = on_fire
        self._on_violation = on_violation
        self._loop = loop or current_loop()
        self._fired = False
        self._calls = 0

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def calls(self) -> int:
        return self._calls

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self._calls += 1
        if self._fired:
            exc = CallbackAlreadyCalledError(self.name, self._calls)
            if self._on_violation is not None:
                self._on_violation(exc)
            else:
                report_violation(exc, self._loop)
            return

        self._fired = True
        on_fire, self._on_fire = self._on_fire, None
        if on_fire is not None:
            on_fire(*args, **kwargs)

    def __repr__(self) -> str:
        return f"CompletionGuard(name={self.name!r}, fired={self._fired}, calls={self._calls})"


def arm(
    on_fire: Callable[..., Any] | None,
    *,
    name: str = "callback",
    loop: asyncio.AbstractEventLoop | None = None,
    on_violation: ViolationHandler | None = None,
) -> CompletionGuard:
    """Arm a completion guard around ``on_fire``.

    Args:
        on_fire: Callback to run on the first invocation (None for a no-op)
        name: Label used when reporting a second invocation
        loop: Loop whose exception handler receives violations
        on_violation: Optional replacement for the default reporter

    Returns:
        The armed guard, to be handed out in place of ``on_fire``
    """
    return CompletionGuard(on_fire, name=name, loop=loop, on_violation=on_violation)
