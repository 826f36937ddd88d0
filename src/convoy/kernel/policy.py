"""Concurrency policies for the iteration scheduler."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Literal


@dataclass(frozen=True)
class Policy:
    """
    How many entries an iteration may have in flight at once.

    Kinds:
    - unbounded: start every entry without waiting for any to finish
    - series: start the next entry only after the previous one succeeded
    - limited: keep at most ``limit`` entries in flight, admitting new ones
      in visitation order as slots free up. A limit of 0 visits nothing.
    """

    kind: Literal["unbounded", "series", "limited"]
    limit: int | None = None

    @staticmethod
    def Unbounded() -> Policy:
        return Policy(kind="unbounded")

    @staticmethod
    def Series() -> Policy:
        return Policy(kind="series")

    @staticmethod
    def Limited(limit: Any) -> Policy:
        """Build a bounded policy from a loosely typed limit.

        ``None``, booleans, non-numbers, NaN and zero or negative values all
        mean "visit nothing". Infinity is the same as ``Unbounded()``. Fractional
        limits are rounded up.
        """
        if isinstance(limit, bool) or not isinstance(limit, Real):
            return Policy(kind="limited", limit=0)
        if math.isnan(limit) or limit <= 0:
            return Policy(kind="limited", limit=0)
        if math.isinf(limit):
            return Policy.Unbounded()
        return Policy(kind="limited", limit=math.ceil(limit))

    def window(self, total: int) -> int:
        """Maximum number of in-flight entries for a run over ``total`` entries."""
        if self.kind == "unbounded":
            return total
        if self.kind == "series":
            return min(1, total)
        return min(self.limit or 0, total)

    def describe(self) -> str:
        if self.kind == "limited":
            return f"limited({self.limit})"
        return self.kind
