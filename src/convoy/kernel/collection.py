"""Collection adapter - turns any supported input into visitation entries.

The adapter resolves the shape of a collection exactly once. Everything
downstream works on the resulting tuple of ``Entry`` values and the ``Shape``
tag, and never inspects the original object again.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from typing import Any, NamedTuple


class Shape(Enum):
    """Shape family of a normalized collection."""

    SEQUENCE = "sequence"
    MAPPING = "mapping"
    ORDERED = "ordered"


class Entry(NamedTuple):
    """One element to visit.

    Attributes:
        index: Ordinal position in visitation order
        key: Identity of the element (list index or mapping key)
        value: The element itself
    """

    index: int
    key: Any
    value: Any


EMPTY: tuple[tuple[Entry, ...], Shape] = ((), Shape.MAPPING)


def normalize(collection: Any) -> tuple[tuple[Entry, ...], Shape]:
    """Normalize a collection into ordered entries and a shape tag.

    Sequences visit in index order, mappings in key-enumeration order,
    ordered key-value structures in insertion order. Other iterables are
    consumed once and keyed by position. ``None``, callables and
    non-iterable objects yield no entries and the mapping shape.

    Args:
        collection: The caller-supplied collection

    Returns:
        Tuple of (entries, shape)
    """
    if collection is None or callable(collection):
        return EMPTY

    if isinstance(collection, OrderedDict):
        return _from_pairs(collection.items()), Shape.ORDERED

    if isinstance(collection, Mapping):
        entries = tuple(
            Entry(index, key, collection[key]) for index, key in enumerate(collection)
        )
        return entries, Shape.MAPPING

    if isinstance(collection, Sequence):
        entries = tuple(Entry(index, index, value) for index, value in enumerate(collection))
        return entries, Shape.SEQUENCE

    items = getattr(collection, "items", None)
    if callable(items):
        return _from_pairs(items()), Shape.ORDERED

    if isinstance(collection, Iterable):
        entries = tuple(Entry(index, index, value) for index, value in enumerate(collection))
        return entries, Shape.SEQUENCE

    return EMPTY


def _from_pairs(pairs: Iterable[tuple[Any, Any]]) -> tuple[Entry, ...]:
    return tuple(Entry(index, key, value) for index, (key, value) in enumerate(pairs))
