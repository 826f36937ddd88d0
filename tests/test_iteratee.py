import asyncio
import functools

import pytest

import convoy
from convoy.combinators.iteratee import Iteratee, as_iterate, positional_arity


def test_positional_arity() -> None:
    assert positional_arity(lambda a, b: None) == 2
    assert positional_arity(lambda a, *, b: None) == 1
    assert positional_arity(lambda *args: None) is None
    assert positional_arity(functools.partial(lambda a, b, c: None, 1)) == 2


def test_callback_style_key_detection() -> None:
    assert not Iteratee.of(lambda v, done: None).pass_key
    assert Iteratee.of(lambda v, k, done: None).pass_key
    assert not Iteratee.of(lambda ctx, v, done: None, leading=1).pass_key


def test_defaulted_parameters_are_not_counted() -> None:
    assert positional_arity(lambda value, done, scale=2: None) == 2
    assert not Iteratee.of(lambda value, done, scale=2: None).pass_key


def test_map_with_defaulted_parameter() -> None:
    async def run():
        def scaled(value, done, scale=2):
            done(None, value * scale)

        return await convoy.map([1, 2], scaled)

    assert asyncio.run(run()) == [2, 4]


def test_coroutine_key_detection() -> None:
    async def value_only(v):
        return v

    async def with_key(v, k):
        return k

    assert Iteratee.of(value_only).is_coroutine
    assert not Iteratee.of(value_only).pass_key
    assert Iteratee.of(with_key).pass_key


def test_non_callable_rejected() -> None:
    with pytest.raises(TypeError):
        Iteratee.of(42)
    with pytest.raises(TypeError):
        as_iterate("nope", loop=None)


def test_as_iterate_passes_callback_style_through() -> None:
    def body(done):
        done()

    assert as_iterate(body, loop=None) is body


def test_as_iterate_wraps_coroutine() -> None:
    async def run():
        async def body():
            return "value"

        iterate = as_iterate(body)
        finished = asyncio.get_running_loop().create_future()
        iterate(lambda *args: finished.set_result(args))
        return await finished

    assert asyncio.run(run()) == (None, "value")
