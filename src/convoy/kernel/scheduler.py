"""Iteration scheduler - the engine behind every collection combinator.

The scheduler walks a precomputed tuple of entries and starts the caller's
operation on each of them under a concurrency policy. Successful results are
merged into a container by an assembly policy. The first error halts the run
and is delivered together with the container as it stood at that moment.

Completion is callback based and runs on the asyncio event loop:

    def operation(value, key, done):
        loop.call_later(0.1, done, None, value * 2)

    run(entries, Policy.Limited(2), operation, assembly, on_done)

``on_done(err, container)`` is always delivered through ``loop.call_soon``,
so it never runs before ``run`` has returned, even when every operation
completes synchronously.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from convoy.kernel.collection import Entry, Shape
from convoy.kernel.errors import CallbackAlreadyCalledError
from convoy.kernel.guard import CompletionGuard, report_exception, report_violation
from convoy.kernel.policy import Policy
from convoy.kernel.stats import IterationStats
from convoy.kernel.trace import Trace

logger = logging.getLogger(__name__)

ElementDone = Callable[..., None]
Operation = Callable[[Any, Any, ElementDone], Any]
OnDone = Callable[[Any, Any], Any]


class Assembly(Protocol):
    """Result-assembly policy supplied by a combinator."""

    def empty(self, shape: Shape) -> Any:
        """Return a fresh container for an input of ``shape``."""
        ...

    def merge(self, container: Any, entry: Entry, result: Any) -> Any:
        """Merge one successful result, returning the updated container."""
        ...

    def finish(self, container: Any) -> Any:
        """Turn the working container into the value handed to ``on_done``."""
        ...


class Iteration:
    """Pending state of a single scheduler run.

    Owned by exactly one ``run`` call. All mutation happens on the event
    loop thread, from the admission pump or from element completions.
    """

    def __init__(
        self,
        entries: Sequence[Entry],
        policy: Policy,
        operation: Operation,
        assembly: Assembly,
        on_done: OnDone | None,
        *,
        shape: Shape = Shape.MAPPING,
        trace: Trace | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._entries = tuple(entries)
        self._policy = policy
        self._operation = operation
        self._assembly = assembly
        self._trace = trace
        self._container = assembly.empty(shape)
        self._on_done = CompletionGuard(
            on_done, name="on_done", loop=self._loop, on_violation=self._violation
        )

        self._total = len(self._entries)
        self._window = policy.window(self._total)
        self._cursor = 0
        self._started = 0
        self._finished = 0
        self._in_flight = 0
        self._error: Any = None
        self._halted = False
        self._pumping = False
        self._trace_id: int | None = None
        self._start_time = 0.0

    @property
    def halted(self) -> bool:
        return self._halted

    @property
    def error(self) -> Any:
        return self._error

    def stats(self) -> IterationStats:
        """Snapshot the pending state."""
        return IterationStats(
            policy=self._policy.describe(),
            total=self._total,
            started=self._started,
            finished=self._finished,
            in_flight=self._in_flight,
            halted=self._halted,
            failed=bool(self._error),
        )

    def start(self) -> Iteration:
        """Begin visiting entries. Must be called once."""
        self._start_time = time.perf_counter()
        if self._trace is not None:
            self._trace_id = self._trace.record(
                "iteration_begin",
                info={"policy": self._policy.describe(), "total": self._total},
            )
        logger.debug("iteration begin: policy=%s total=%d", self._policy.describe(), self._total)

        if self._window == 0:
            self._complete(None)
            return self
        self._pump()
        return self

    def _pump(self) -> None:
        # Admission runs as a loop over the cursor. Completions that arrive
        # while it is running only update counters; the loop picks them up.
        if self._pumping:
            return
        self._pumping = True
        try:
            while (
                not self._halted
                and self._cursor < self._total
                and self._in_flight < self._window
            ):
                entry = self._entries[self._cursor]
                self._cursor += 1
                self._launch(entry)
        finally:
            self._pumping = False

    def _launch(self, entry: Entry) -> None:
        self._started += 1
        self._in_flight += 1

        element_id: int | None = None
        if self._trace is not None:
            element_id = self._trace.record(
                "element_begin",
                info={"key": entry.key, "index": entry.index},
                parent_id=self._trace_id,
            )
        started_at = time.perf_counter()

        def on_element(err: Any = None, result: Any = None) -> None:
            self._element_done(entry, element_id, started_at, err, result)

        done = CompletionGuard(
            on_element,
            name=f"element {entry.key!r}",
            loop=self._loop,
            on_violation=self._violation,
        )
        try:
            self._operation(entry.value, entry.key, done)
        except Exception as exc:
            if done.fired:
                # Already completed; the exception has no callback left to reach.
                report_exception(
                    exc,
                    self._loop,
                    message=f"convoy: element {entry.key!r} raised after completing",
                )
            else:
                done(exc)

    def _element_done(
        self,
        entry: Entry,
        element_id: int | None,
        started_at: float,
        err: Any,
        result: Any,
    ) -> None:
        self._in_flight -= 1
        if self._halted:
            # Late completion after an error: result is discarded.
            return

        if self._trace is not None:
            self._trace.record(
                "element_error" if err else "element_end",
                info={"key": entry.key, "index": entry.index},
                parent_id=element_id,
                duration_ms=(time.perf_counter() - started_at) * 1000,
            )

        if err:
            self._error = err
            self._complete(err)
            return

        self._container = self._assembly.merge(self._container, entry, result)
        self._finished += 1
        if self._finished == self._total:
            self._complete(None)
            return
        self._pump()

    def _complete(self, err: Any) -> None:
        self._halted = True
        output = self._assembly.finish(self._container)
        stats = self.stats()
        if self._trace is not None:
            self._trace.record(
                "iteration_end",
                info=stats.model_dump(),
                parent_id=self._trace_id,
                duration_ms=(time.perf_counter() - self._start_time) * 1000,
            )
        logger.debug(
            "iteration end: policy=%s finished=%d/%d failed=%s",
            stats.policy,
            stats.finished,
            stats.total,
            stats.failed,
        )
        self._loop.call_soon(self._on_done, err, output)

    def _violation(self, exc: CallbackAlreadyCalledError) -> None:
        if self._trace is not None:
            self._trace.record(
                "protocol_violation",
                info={"callback": exc.callback, "calls": exc.calls},
                parent_id=self._trace_id,
            )
        report_violation(exc, self._loop)


def run(
    entries: Sequence[Entry],
    policy: Policy,
    operation: Operation,
    assembly: Assembly,
    on_done: OnDone | None,
    *,
    shape: Shape = Shape.MAPPING,
    trace: Trace | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Iteration:
    """Run ``operation`` over ``entries`` under ``policy``.

    Args:
        entries: Entries from ``normalize``
        policy: Concurrency policy
        operation: ``operation(value, key, done)``; ``done(err, result)``
            may be called at most once, synchronously or later
        assembly: Result-assembly policy
        on_done: ``on_done(err, container)``, delivered exactly once on a
            later loop turn
        shape: Shape tag of the input, used for the empty container
        trace: Optional trace to record events into
        loop: Event loop, defaults to the running loop

    Returns:
        The started Iteration
    """
    iteration = Iteration(
        entries,
        policy,
        operation,
        assembly,
        on_done,
        shape=shape,
        trace=trace,
        loop=loop,
    )
    return iteration.start()
