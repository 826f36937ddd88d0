"""Bridge terminal callbacks to awaitables.

Every combinator takes an optional callback. When it is omitted the
combinator returns an ``asyncio.Future`` instead, settled from the same
terminal callback the scheduler would have invoked.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from convoy.kernel.errors import IterationError


def _failure(reason: Any, partial: Any) -> IterationError:
    error = IterationError(reason, partial)
    if isinstance(reason, BaseException):
        error.__cause__ = reason
    return error


def settle_result(
    callback: Callable[[Any, Any], Any] | None,
    loop: asyncio.AbstractEventLoop,
) -> tuple[Callable[[Any, Any], Any], asyncio.Future[Any] | None]:
    """Return ``(on_done, future)`` for a ``callback(err, result)`` combinator.

    With a callback the callback itself is used and no future is created.
    """
    if callback is not None:
        return callback, None

    future: asyncio.Future[Any] = loop.create_future()

    def on_done(err: Any = None, result: Any = None) -> None:
        if future.done():
            return
        if err:
            future.set_exception(_failure(err, result))
        else:
            future.set_result(result)

    return on_done, future


def settle_results(
    callback: Callable[..., Any] | None,
    loop: asyncio.AbstractEventLoop,
) -> tuple[Callable[..., Any], asyncio.Future[Any] | None]:
    """Return ``(on_done, future)`` for a ``callback(err, *results)`` loop driver.

    The future resolves to None, the single result, or a tuple of results.
    """
    if callback is not None:
        return callback, None

    future: asyncio.Future[Any] = loop.create_future()

    def on_done(err: Any = None, *results: Any) -> None:
        if future.done():
            return
        if err:
            future.set_exception(_failure(err, None))
        elif not results:
            future.set_result(None)
        elif len(results) == 1:
            future.set_result(results[0])
        else:
            future.set_result(results)

    return on_done, future
