import asyncio

import pytest

from convoy import IterationError, Trace, do_until, do_whilst, run_loop, until, whilst
from convoy.kernel import LoopState
from fakes import DELAY, ViolationRecorder, callback_result


class Counter:
    """Loop body that records test and iterate calls."""

    def __init__(self, limit: int = 5):
        self.limit = limit
        self.count = 0
        self.tests: list[int] = []
        self.iterations: list[int] = []

    def below(self, *args) -> bool:
        self.tests.append(self.count)
        return self.count < self.limit

    def reached(self, *args) -> bool:
        self.tests.append(self.count)
        return self.count == self.limit

    def step(self, done) -> None:
        self.iterations.append(self.count)
        self.count += 1
        done()

    def step_later(self, done) -> None:
        self.iterations.append(self.count)
        self.count += 1
        asyncio.get_running_loop().call_later(DELAY, done)


def test_whilst_tests_before_each_iteration() -> None:
    counter = Counter()
    args = callback_result(lambda cb: whilst(counter.below, counter.step_later, cb))
    assert args == (None,)
    assert counter.iterations == [0, 1, 2, 3, 4]
    assert counter.tests == [0, 1, 2, 3, 4, 5]


def test_whilst_with_synchronous_iterate() -> None:
    counter = Counter(limit=10000)
    args = callback_result(lambda cb: whilst(counter.below, counter.step, cb))
    assert args == (None,)
    assert counter.count == 10000


def test_whilst_failing_first_test_never_iterates() -> None:
    counter = Counter(limit=0)
    args = callback_result(lambda cb: whilst(counter.below, counter.step, cb))
    assert args == (None,)
    assert counter.iterations == []
    assert counter.tests == [0]


def test_do_whilst_iterates_before_first_test() -> None:
    counter = Counter()
    args = callback_result(lambda cb: do_whilst(counter.step_later, counter.below, cb))
    assert args == (None,)
    assert counter.iterations == [0, 1, 2, 3, 4]
    assert counter.tests == [1, 2, 3, 4, 5]


def test_until_loops_while_test_fails() -> None:
    counter = Counter()
    args = callback_result(lambda cb: until(counter.reached, counter.step_later, cb))
    assert args == (None,)
    assert counter.iterations == [0, 1, 2, 3, 4]
    assert counter.tests == [0, 1, 2, 3, 4, 5]


def test_do_until_iterates_before_first_test() -> None:
    counter = Counter()
    args = callback_result(lambda cb: do_until(counter.step, counter.reached, cb))
    assert args == (None,)
    assert counter.iterations == [0, 1, 2, 3, 4]
    assert counter.tests == [1, 2, 3, 4, 5]


def test_results_feed_test_and_callback() -> None:
    seen = []
    count = 0

    def test(*args):
        seen.append(args)
        return count < 3

    def iterate(done):
        nonlocal count
        count += 1
        done(None, count, count * 10)

    args = callback_result(lambda cb: whilst(test, iterate, cb))
    assert seen == [(), (1, 10), (2, 20), (3, 30)]
    assert args == (None, 3, 30)


def test_iterate_error_ends_loop() -> None:
    count = 0

    def iterate(done):
        nonlocal count
        count += 1
        done("stop" if count == 2 else None)

    args = callback_result(lambda cb: whilst(lambda *_: True, iterate, cb))
    assert args == ("stop",)
    assert count == 2


def test_test_exception_ends_loop() -> None:
    def test(*args):
        raise ValueError("broken test")

    err, = callback_result(lambda cb: whilst(test, lambda done: done(), cb))
    assert isinstance(err, ValueError)


def test_exception_after_iteration_completes_reaches_exception_handler() -> None:
    async def run():
        recorder = ViolationRecorder().install()
        count = 0

        def iterate(done):
            nonlocal count
            count += 1
            done()
            raise ValueError("bug after done")

        result = await whilst(lambda *_: count < 1, iterate)
        await asyncio.sleep(0)
        return result, recorder

    result, recorder = asyncio.run(run())
    assert result is None
    assert [type(e) for e in recorder.exceptions] == [ValueError]
    assert "iteration 1" in recorder.contexts[0]["message"]


def test_whilst_callback_is_deferred_when_first_test_fails() -> None:
    async def run():
        calls = []
        iterations = []
        whilst(lambda *_: False, lambda done: iterations.append(1) or done(), lambda *a: calls.append(a))
        assert calls == []
        await asyncio.sleep(0)
        return calls, iterations

    calls, iterations = asyncio.run(run())
    assert calls == [(None,)]
    assert iterations == []


def test_do_whilst_callback_is_deferred_with_synchronous_body() -> None:
    async def run():
        calls = []
        counter = Counter(limit=3)
        do_whilst(counter.step, counter.below, lambda *a: calls.append(a))
        # The body and tests all ran synchronously; delivery has not
        assert counter.count == 3
        assert calls == []
        await asyncio.sleep(0)
        return calls

    assert asyncio.run(run()) == [(None,)]


def test_until_callback_is_deferred() -> None:
    async def run():
        calls = []
        until(lambda *_: True, lambda done: done(), lambda *a: calls.append(a))
        assert calls == []
        await asyncio.sleep(0)
        return calls

    assert asyncio.run(run()) == [(None,)]


def test_double_iteration_callback_is_reported() -> None:
    async def run():
        recorder = ViolationRecorder().install()
        count = 0

        def iterate(done):
            nonlocal count
            count += 1
            done()
            done()

        await whilst(lambda *_: count < 2, iterate)
        await asyncio.sleep(DELAY)
        return count, recorder

    count, recorder = asyncio.run(run())
    assert count == 2
    assert [e.callback for e in recorder.exceptions] == ["iteration 1", "iteration 2"]


def test_whilst_future_resolves_to_last_result() -> None:
    async def run():
        count = 0

        async def iterate():
            nonlocal count
            count += 1
            await asyncio.sleep(0)
            return count

        return await whilst(lambda *args: count < 3, iterate)

    assert asyncio.run(run()) == 3


def test_whilst_future_resolves_to_tuple_of_results() -> None:
    async def run():
        return await do_whilst(lambda done: done(None, "a", "b"), lambda *args: False)

    assert asyncio.run(run()) == ("a", "b")


def test_coroutine_returning_none_gives_no_results() -> None:
    seen = []

    async def run():
        async def iterate():
            await asyncio.sleep(0)

        def test(*args):
            seen.append(args)
            return len(seen) < 3

        return await whilst(test, iterate)

    assert asyncio.run(run()) is None
    assert seen == [(), (), ()]


def test_whilst_future_raises_iteration_error() -> None:
    async def run():
        async def iterate():
            raise KeyError("gone")

        await whilst(lambda *args: True, iterate)

    with pytest.raises(IterationError) as info:
        asyncio.run(run())
    assert isinstance(info.value.reason, KeyError)
    assert info.value.__cause__ is info.value.reason


def test_run_loop_driver_state_and_trace() -> None:
    async def run():
        trace = Trace()
        finished = asyncio.get_running_loop().create_future()
        count = 0

        def iterate(done):
            nonlocal count
            count += 1
            done()

        driver = run_loop(
            lambda *args: count < 4,
            iterate,
            lambda *args: finished.set_result(args),
            trace=trace,
        )
        assert driver.state is LoopState.DONE
        return await finished, driver, trace

    args, driver, trace = asyncio.run(run())
    assert args == (None,)
    assert driver.iterations == 4
    assert len(trace.find_all("loop_test")) == 5
    assert trace.find_all("loop_end")[0].info == {"iterations": 4, "failed": False}
