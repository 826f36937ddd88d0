"""Combinators - collection and control-flow operations on the iteration kernel."""

from convoy.combinators.collections import (
    each,
    each_limit,
    each_series,
    filter,
    filter_limit,
    filter_series,
    iterate_collection,
    map,
    map_limit,
    map_series,
    map_values,
    map_values_limit,
    map_values_series,
    omit,
    omit_limit,
    omit_series,
    pick,
    pick_limit,
    pick_series,
    reduce,
    reject,
    reject_limit,
    reject_series,
)
from convoy.combinators.control import do_until, do_whilst, until, whilst

__all__ = [
    # Collections
    "iterate_collection",
    "each",
    "each_series",
    "each_limit",
    "map",
    "map_series",
    "map_limit",
    "map_values",
    "map_values_series",
    "map_values_limit",
    "filter",
    "filter_series",
    "filter_limit",
    "reject",
    "reject_series",
    "reject_limit",
    "pick",
    "pick_series",
    "pick_limit",
    "omit",
    "omit_series",
    "omit_limit",
    "reduce",
    # Control flow
    "whilst",
    "do_whilst",
    "until",
    "do_until",
]
