"""Loop driver - test/iterate repetition on the event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Literal

from convoy.kernel.errors import CallbackAlreadyCalledError
from convoy.kernel.guard import CompletionGuard, report_exception, report_violation
from convoy.kernel.trace import Trace

logger = logging.getLogger(__name__)

Test = Callable[..., Any]
Iterate = Callable[[Callable[..., None]], Any]


class LoopState(Enum):
    TESTING = "testing"
    ITERATING = "iterating"
    DONE = "done"


class LoopDriver:
    """State machine behind whilst / do_whilst / until / do_until.

    ``test(*results)`` sees the results of the latest iteration. While it
    passes, ``iterate(done)`` runs and ``done(err, *results)`` feeds the next
    test. When the test fails, ``on_done(None, *results)`` receives the last
    results; an error ends the loop with ``on_done(err)``.
    """

    def __init__(
        self,
        test: Test,
        iterate: Iterate,
        on_done: Callable[..., Any] | None,
        *,
        first: Literal["test", "iterate"] = "test",
        negate: bool = False,
        trace: Trace | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._test = test
        self._iterate = iterate
        self._negate = negate
        self._trace = trace
        self._on_done = CompletionGuard(
            on_done, name="on_done", loop=self._loop, on_violation=self._violation
        )
        self._state = LoopState.TESTING if first == "test" else LoopState.ITERATING
        self._args: tuple[Any, ...] = ()
        self._waiting = False
        self._pumping = False
        self._iterations = 0
        self._trace_id: int | None = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def iterations(self) -> int:
        return self._iterations

    def start(self) -> LoopDriver:
        if self._trace is not None:
            self._trace_id = self._trace.record(
                "loop_begin",
                info={"first": self._state.value, "negate": self._negate},
            )
        self._pump()
        return self

    def _pump(self) -> None:
        if self._pumping:
            return
        self._pumping = True
        try:
            while self._state is not LoopState.DONE and not self._waiting:
                if self._state is LoopState.TESTING:
                    self._run_test()
                else:
                    self._run_iterate()
        finally:
            self._pumping = False

    def _run_test(self) -> None:
        try:
            passed = bool(self._test(*self._args))
        except Exception as exc:
            self._complete(exc)
            return
        if self._negate:
            passed = not passed
        if self._trace is not None:
            self._trace.record("loop_test", info={"passed": passed}, parent_id=self._trace_id)
        if passed:
            self._state = LoopState.ITERATING
        else:
            self._complete(None, *self._args)

    def _run_iterate(self) -> None:
        self._waiting = True
        self._iterations += 1
        done = CompletionGuard(
            self._iteration_done,
            name=f"iteration {self._iterations}",
            loop=self._loop,
            on_violation=self._violation,
        )
        try:
            self._iterate(done)
        except Exception as exc:
            if done.fired:
                report_exception(
                    exc,
                    self._loop,
                    message=f"convoy: iteration {self._iterations} raised after completing",
                )
            else:
                done(exc)

    def _iteration_done(self, err: Any = None, *results: Any) -> None:
        if self._state is LoopState.DONE:
            return
        self._waiting = False
        if err:
            self._complete(err)
            return
        self._args = results
        self._state = LoopState.TESTING
        self._pump()

    def _complete(self, err: Any, *results: Any) -> None:
        self._state = LoopState.DONE
        if self._trace is not None:
            self._trace.record(
                "loop_end",
                info={"iterations": self._iterations, "failed": bool(err)},
                parent_id=self._trace_id,
            )
        logger.debug("loop end: iterations=%d failed=%s", self._iterations, bool(err))
        if err:
            self._loop.call_soon(self._on_done, err)
        else:
            self._loop.call_soon(self._on_done, None, *results)

    def _violation(self, exc: CallbackAlreadyCalledError) -> None:
        if self._trace is not None:
            self._trace.record(
                "protocol_violation",
                info={"callback": exc.callback, "calls": exc.calls},
                parent_id=self._trace_id,
            )
        report_violation(exc, self._loop)


def run_loop(
    test: Test,
    iterate: Iterate,
    on_done: Callable[..., Any] | None,
    *,
    first: Literal["test", "iterate"] = "test",
    negate: bool = False,
    trace: Trace | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> LoopDriver:
    """Start a loop driver.

    Args:
        test: Synchronous predicate called with the latest results
        iterate: ``iterate(done)``; ``done(err, *results)`` at most once
        on_done: ``on_done(err, *results)``, delivered on a later loop turn
        first: "iterate" runs one iteration before the first test
        negate: Loop while the test fails instead of while it passes
        trace: Optional trace to record events into
        loop: Event loop, defaults to the running loop

    Returns:
        The started LoopDriver
    """
    driver = LoopDriver(
        test,
        iterate,
        on_done,
        first=first,
        negate=negate,
        trace=trace,
        loop=loop,
    )
    return driver.start()
