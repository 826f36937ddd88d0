"""Collection combinators: each, map, map_values, filter, reject, pick, omit, reduce.

Every combinator comes in three policies: unbounded (``omit``), series
(``omit_series``) and limited (``omit_limit``). Each one takes an optional
trailing ``callback(err, result)``; without it an ``asyncio.Future`` is
returned that resolves to the result or fails with ``IterationError``.

Keyword options:
    context: Passed as the first positional argument to the iteratee
    trace: A ``Trace`` that records the run
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from convoy.combinators.assembly import (
    EachAssembly,
    FilterAssembly,
    MapAssembly,
    MapValuesAssembly,
    PickAssembly,
    ReduceAssembly,
)
from convoy.combinators.completion import settle_result
from convoy.combinators.iteratee import UNSET, as_operation
from convoy.kernel.collection import normalize
from convoy.kernel.policy import Policy
from convoy.kernel.scheduler import Assembly, run
from convoy.kernel.trace import Trace

Callback = Callable[[Any, Any], Any]


def iterate_collection(
    collection: Any,
    policy: Policy,
    iteratee: Callable[..., Any],
    assembly: Assembly,
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Run ``iteratee`` over ``collection`` and assemble the result.

    This is the single path every collection combinator goes through.
    """
    loop = asyncio.get_running_loop()
    on_done, future = settle_result(callback, loop)
    entries, shape = normalize(collection)
    operation = as_operation(iteratee, context=context, loop=loop)
    run(entries, policy, operation, assembly, on_done, shape=shape, trace=trace, loop=loop)
    return future


# each


def each(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Run ``iteratee`` on every element concurrently; the result is None."""
    return iterate_collection(
        collection, Policy.Unbounded(), iteratee, EachAssembly(), callback,
        context=context, trace=trace,
    )


def each_series(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Series(), iteratee, EachAssembly(), callback,
        context=context, trace=trace,
    )


def each_limit(
    collection: Any,
    limit: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Limited(limit), iteratee, EachAssembly(), callback,
        context=context, trace=trace,
    )


# map


def map(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Transform every element; the result is a list in visitation order.

    Mapping inputs produce a list of transformed values in key order.
    """
    return iterate_collection(
        collection, Policy.Unbounded(), iteratee, MapAssembly(), callback,
        context=context, trace=trace,
    )


def map_series(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Series(), iteratee, MapAssembly(), callback,
        context=context, trace=trace,
    )


def map_limit(
    collection: Any,
    limit: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Limited(limit), iteratee, MapAssembly(), callback,
        context=context, trace=trace,
    )


# map_values


def map_values(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Transform every element; the result is a dict keyed like the input."""
    return iterate_collection(
        collection, Policy.Unbounded(), iteratee, MapValuesAssembly(), callback,
        context=context, trace=trace,
    )


def map_values_series(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Series(), iteratee, MapValuesAssembly(), callback,
        context=context, trace=trace,
    )


def map_values_limit(
    collection: Any,
    limit: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Limited(limit), iteratee, MapValuesAssembly(), callback,
        context=context, trace=trace,
    )


# filter / reject


def filter(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Keep the values whose iteratee result is truthy, as a list in visitation order."""
    return iterate_collection(
        collection, Policy.Unbounded(), iteratee, FilterAssembly(keep=True), callback,
        context=context, trace=trace,
    )


def filter_series(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Series(), iteratee, FilterAssembly(keep=True), callback,
        context=context, trace=trace,
    )


def filter_limit(
    collection: Any,
    limit: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Limited(limit), iteratee, FilterAssembly(keep=True), callback,
        context=context, trace=trace,
    )


def reject(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Keep the values whose iteratee result is falsy, as a list in visitation order."""
    return iterate_collection(
        collection, Policy.Unbounded(), iteratee, FilterAssembly(keep=False), callback,
        context=context, trace=trace,
    )


def reject_series(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Series(), iteratee, FilterAssembly(keep=False), callback,
        context=context, trace=trace,
    )


def reject_limit(
    collection: Any,
    limit: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Limited(limit), iteratee, FilterAssembly(keep=False), callback,
        context=context, trace=trace,
    )


# pick / omit


def pick(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Keep the entries whose iteratee result is truthy, as a dict keyed like the input.

    Sequence inputs are keyed by index.
    """
    return iterate_collection(
        collection, Policy.Unbounded(), iteratee, PickAssembly(keep=True), callback,
        context=context, trace=trace,
    )


def pick_series(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Series(), iteratee, PickAssembly(keep=True), callback,
        context=context, trace=trace,
    )


def pick_limit(
    collection: Any,
    limit: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Limited(limit), iteratee, PickAssembly(keep=True), callback,
        context=context, trace=trace,
    )


def omit(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Keep the entries whose iteratee result is falsy, as a dict keyed like the input.

    Sequence inputs are keyed by index:

        >>> await omit([1, 3, 2, 4], is_odd)
        {2: 2, 3: 4}
    """
    return iterate_collection(
        collection, Policy.Unbounded(), iteratee, PickAssembly(keep=False), callback,
        context=context, trace=trace,
    )


def omit_series(
    collection: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Series(), iteratee, PickAssembly(keep=False), callback,
        context=context, trace=trace,
    )


def omit_limit(
    collection: Any,
    limit: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    return iterate_collection(
        collection, Policy.Limited(limit), iteratee, PickAssembly(keep=False), callback,
        context=context, trace=trace,
    )


# reduce


def reduce(
    collection: Any,
    memo: Any,
    iteratee: Callable[..., Any],
    callback: Callback | None = None,
    *,
    context: Any = UNSET,
    trace: Trace | None = None,
) -> asyncio.Future[Any] | None:
    """Fold the collection in series.

    The iteratee is ``fn(memo, value, done)`` or ``fn(memo, value, key, done)``
    (or a coroutine function without ``done``) and produces the next memo.
    The result is the final memo; an empty collection yields ``memo``.
    """
    loop = asyncio.get_running_loop()
    on_done, future = settle_result(callback, loop)
    entries, shape = normalize(collection)
    assembly = ReduceAssembly(memo)
    operation = as_operation(
        iteratee,
        context=context,
        leading=lambda: (assembly.memo,),
        loop=loop,
    )
    run(entries, Policy.Series(), operation, assembly, on_done, shape=shape, trace=trace, loop=loop)
    return future
