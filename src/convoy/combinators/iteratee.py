"""Binding of user iteratees to scheduler operations.

Two iteratee styles are accepted:

- callback style: ``fn(value, done)`` or ``fn(value, key, done)``, picked by
  the number of positional parameters; ``done(err, result)`` reports back.
- coroutine functions: ``async fn(value)`` or ``async fn(value, key)``; the
  return value is the result and a raised exception is the error.

An optional context is passed as the first positional argument.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from convoy.kernel.scheduler import ElementDone, Operation

UNSET: Any = object()

# Strong references to running iteratee tasks until they finish
_tasks: set[asyncio.Future[Any]] = set()


def positional_arity(fn: Callable[..., Any]) -> int | None:
    """Count required positional parameters, or None if ``fn`` takes ``*args``.

    Parameters with a default are not counted, so ``fn(value, done, scale=2)``
    is a two-argument iteratee.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if (
            param.kind
            in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
            and param.default is inspect.Parameter.empty
        ):
            count += 1
    return count


def schedule(
    awaitable: Awaitable[Any],
    done: Callable[..., None],
    loop: asyncio.AbstractEventLoop,
    *,
    unpack_none: bool = False,
) -> None:
    """Run ``awaitable`` as a task and report its outcome through ``done``."""
    task = asyncio.ensure_future(awaitable, loop=loop)
    _tasks.add(task)

    def settle(fut: asyncio.Future[Any]) -> None:
        _tasks.discard(fut)
        if fut.cancelled():
            done(asyncio.CancelledError())
            return
        exc = fut.exception()
        if exc is not None:
            done(exc)
            return
        result = fut.result()
        if unpack_none and result is None:
            done(None)
        else:
            done(None, result)

    task.add_done_callback(settle)


@dataclass(frozen=True)
class Iteratee:
    """A user function together with how it must be called."""

    fn: Callable[..., Any]
    is_coroutine: bool
    pass_key: bool

    @classmethod
    def of(cls, fn: Callable[..., Any], leading: int = 0) -> Iteratee:
        """Inspect ``fn``; ``leading`` counts arguments placed before the value."""
        if not callable(fn):
            raise TypeError(f"iteratee must be callable, got {type(fn).__name__}")
        is_coroutine = inspect.iscoroutinefunction(fn)
        arity = positional_arity(fn)
        # value and key, plus done for callback style
        with_key = leading + (2 if is_coroutine else 3)
        pass_key = arity is None or arity >= with_key
        return cls(fn=fn, is_coroutine=is_coroutine, pass_key=pass_key)

    def call(
        self,
        leading: tuple[Any, ...],
        value: Any,
        key: Any,
        done: ElementDone,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        args = (*leading, value, key) if self.pass_key else (*leading, value)
        if self.is_coroutine:
            schedule(self.fn(*args), done, loop)
        else:
            self.fn(*args, done)


def as_operation(
    fn: Callable[..., Any],
    *,
    context: Any = UNSET,
    leading: Callable[[], tuple[Any, ...]] | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Operation:
    """Wrap a user iteratee as a scheduler operation.

    Args:
        fn: Callback-style function or coroutine function
        context: Passed as the first argument when given
        leading: Produces extra arguments placed after the context and
            before the value at call time (the accumulator for reduce)
        loop: Loop that runs coroutine iteratees

    Returns:
        ``operation(value, key, done)``
    """
    prefix: tuple[Any, ...] = () if context is UNSET else (context,)
    extra = len(leading()) if leading is not None else 0
    iteratee = Iteratee.of(fn, leading=len(prefix) + extra)
    run_loop = loop or asyncio.get_running_loop()

    def operation(value: Any, key: Any, done: ElementDone) -> None:
        args = prefix + leading() if leading is not None else prefix
        iteratee.call(args, value, key, done, run_loop)

    return operation


def as_iterate(
    fn: Callable[..., Any],
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Callable[[Callable[..., None]], None]:
    """Wrap a loop body as ``iterate(done)``.

    Coroutine functions are called without arguments; a ``None`` return
    produces no results, anything else a single result.
    """
    if not callable(fn):
        raise TypeError(f"iterate must be callable, got {type(fn).__name__}")
    if not inspect.iscoroutinefunction(fn):
        return fn
    run_loop = loop or asyncio.get_running_loop()

    def iterate(done: Callable[..., None]) -> None:
        schedule(fn(), done, run_loop, unpack_none=True)

    return iterate
