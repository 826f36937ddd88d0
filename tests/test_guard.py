import asyncio
import logging

from convoy import CallbackAlreadyCalledError
from convoy.kernel import CompletionGuard, arm, report_violation
from fakes import ViolationRecorder


def test_first_call_fires() -> None:
    calls = []
    guard = CompletionGuard(lambda *args: calls.append(args), name="cb")
    guard(None, 1)
    assert calls == [(None, 1)]
    assert guard.fired
    assert guard.calls == 1


def test_second_call_goes_to_violation_handler() -> None:
    calls = []
    violations = []
    guard = arm(
        lambda *args: calls.append(args),
        name="cb",
        on_violation=violations.append,
    )
    guard(None, 1)
    guard(None, 2)
    guard("err")

    assert calls == [(None, 1)]
    assert [v.calls for v in violations] == [2, 3]
    assert all(isinstance(v, CallbackAlreadyCalledError) for v in violations)
    assert violations[0].callback == "cb"


def test_none_target_is_noop() -> None:
    guard = CompletionGuard(None)
    guard(None, 1)
    assert guard.fired


def test_violation_reaches_loop_exception_handler() -> None:
    async def run():
        recorder = ViolationRecorder().install()
        guard = CompletionGuard(lambda *_: None, name="element 0")
        guard()
        guard()
        # Reported on a later turn, not inline
        assert recorder.contexts == []
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return recorder

    recorder = asyncio.run(run())
    assert len(recorder.exceptions) == 1
    exc = recorder.exceptions[0]
    assert isinstance(exc, CallbackAlreadyCalledError)
    assert exc.callback == "element 0"
    assert recorder.contexts[0]["callback_name"] == "element 0"


def test_violation_without_loop_is_logged(caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="convoy.kernel.guard"):
        report_violation(CallbackAlreadyCalledError("cb", 2))
    assert "callback was already called" in caplog.text


def test_error_message_includes_context() -> None:
    exc = CallbackAlreadyCalledError("on_done", 2)
    assert str(exc) == "callback was already called (callback='on_done', calls=2)"
