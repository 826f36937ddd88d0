"""Assembly policies - how each combinator builds its result.

The scheduler only calls ``merge`` for successful results and stops calling
it once an error has been observed, so ``finish`` applied at that moment
yields the partial result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from convoy.kernel.collection import Entry, Shape


class EachAssembly:
    """Discard results; the combinator only reports completion."""

    def empty(self, shape: Shape) -> None:
        return None

    def merge(self, container: None, entry: Entry, result: Any) -> None:
        return None

    def finish(self, container: None) -> None:
        return None


class MapAssembly:
    """Transformed values as a list in visitation order."""

    def empty(self, shape: Shape) -> dict[int, Any]:
        return {}

    def merge(self, container: dict[int, Any], entry: Entry, result: Any) -> dict[int, Any]:
        container[entry.index] = result
        return container

    def finish(self, container: dict[int, Any]) -> list[Any]:
        return [container[index] for index in sorted(container)]


class MapValuesAssembly:
    """Transformed values keyed like the input."""

    def empty(self, shape: Shape) -> dict[Any, Any]:
        return {}

    def merge(self, container: dict[Any, Any], entry: Entry, result: Any) -> dict[Any, Any]:
        container[entry.key] = result
        return container

    def finish(self, container: dict[Any, Any]) -> dict[Any, Any]:
        return dict(container)


@dataclass(frozen=True)
class FilterAssembly:
    """Original values whose result matches ``keep``, as a list in visitation order."""

    keep: bool = True

    def empty(self, shape: Shape) -> dict[int, Any]:
        return {}

    def merge(self, container: dict[int, Any], entry: Entry, result: Any) -> dict[int, Any]:
        if bool(result) is self.keep:
            container[entry.index] = entry.value
        return container

    def finish(self, container: dict[int, Any]) -> list[Any]:
        return [container[index] for index in sorted(container)]


@dataclass(frozen=True)
class PickAssembly:
    """Original values whose result matches ``keep``, keyed like the input.

    ``keep=True`` is pick, ``keep=False`` is omit.
    """

    keep: bool = True

    def empty(self, shape: Shape) -> dict[Any, Any]:
        return {}

    def merge(self, container: dict[Any, Any], entry: Entry, result: Any) -> dict[Any, Any]:
        if bool(result) is self.keep:
            container[entry.key] = entry.value
        return container

    def finish(self, container: dict[Any, Any]) -> dict[Any, Any]:
        return dict(container)


@dataclass
class ReduceAssembly:
    """Thread an accumulator through a series run."""

    memo: Any = None

    def empty(self, shape: Shape) -> Any:
        return self.memo

    def merge(self, container: Any, entry: Entry, result: Any) -> Any:
        self.memo = result
        return result

    def finish(self, container: Any) -> Any:
        return container
