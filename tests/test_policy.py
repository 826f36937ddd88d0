import math

import pytest

from convoy import Policy


def test_unbounded_window_is_total() -> None:
    assert Policy.Unbounded().window(7) == 7
    assert Policy.Unbounded().window(0) == 0


def test_series_window_is_one() -> None:
    assert Policy.Series().window(7) == 1
    assert Policy.Series().window(0) == 0


def test_limited_window_is_capped_by_total() -> None:
    assert Policy.Limited(3).window(10) == 3
    assert Policy.Limited(3).window(2) == 2


@pytest.mark.parametrize("limit", [0, -1, None, "2", True, False, math.nan])
def test_degenerate_limits_visit_nothing(limit) -> None:
    policy = Policy.Limited(limit)
    assert policy.kind == "limited"
    assert policy.window(5) == 0


def test_infinite_limit_is_unbounded() -> None:
    assert Policy.Limited(math.inf) == Policy.Unbounded()


def test_fractional_limit_rounds_up() -> None:
    assert Policy.Limited(1.2).limit == 2
    assert Policy.Limited(0.5).window(3) == 1


def test_describe() -> None:
    assert Policy.Unbounded().describe() == "unbounded"
    assert Policy.Series().describe() == "series"
    assert Policy.Limited(4).describe() == "limited(4)"


def test_policy_is_frozen() -> None:
    policy = Policy.Series()
    with pytest.raises(Exception):
        policy.kind = "unbounded"  # type: ignore[misc]
