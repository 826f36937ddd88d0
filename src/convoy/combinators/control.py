"""Control-flow combinators: whilst, do_whilst, until, do_until."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from convoy.combinators.completion import settle_results
from convoy.combinators.iteratee import as_iterate
from convoy.kernel.loop import run_loop
from convoy.kernel.trace import Trace


def _drive(
    test: Callable[..., Any],
    iterate: Callable[..., Any],
    callback: Callable[..., Any] | None,
    *,
    first: str,
    negate: bool,
    trace: Trace | None,
) -> asyncio.Future[Any] | None:
    loop = asyncio.get_running_loop()
    on_done, future = settle_results(callback, loop)
    run_loop(
        test,
        as_iterate(iterate, loop=loop),
        on_done,
        first=first,  # type: ignore[arg-type]
        negate=negate,
        trace=trace,
        loop=loop,
    )
    return future


def whilst(
    test: Callable[..., Any],
    iterate: Callable[..., Any],
    callback: Callable[..., Any] | None = None,
    *,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Repeat ``iterate`` while ``test`` passes.

    ``test(*results)`` is called before every iteration with the results of
    the previous one (no arguments the first time). ``iterate(done)`` reports
    with ``done(err, *results)``; a coroutine function may be used instead.

    Args:
        test: Synchronous predicate
        iterate: Loop body
        callback: ``callback(err, *results)`` with the last results

    Returns:
        None if a callback was given, otherwise a Future of the last results
    """
    return _drive(test, iterate, callback, first="test", negate=False, trace=trace)


def do_whilst(
    iterate: Callable[..., Any],
    test: Callable[..., Any],
    callback: Callable[..., Any] | None = None,
    *,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Like ``whilst`` but runs ``iterate`` once before the first test."""
    return _drive(test, iterate, callback, first="iterate", negate=False, trace=trace)


def until(
    test: Callable[..., Any],
    iterate: Callable[..., Any],
    callback: Callable[..., Any] | None = None,
    *,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Repeat ``iterate`` until ``test`` passes."""
    return _drive(test, iterate, callback, first="test", negate=True, trace=trace)


def do_until(
    iterate: Callable[..., Any],
    test: Callable[..., Any],
    callback: Callable[..., Any] | None = None,
    *,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Like ``until`` but runs ``iterate`` once before the first test."""
    return _drive(test, iterate, callback, first="iterate", negate=True, trace=trace)
