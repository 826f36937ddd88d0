from .combinators import (
    do_until,
    do_whilst,
    each,
    each_limit,
    each_series,
    filter,
    filter_limit,
    filter_series,
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
    until,
    whilst,
)
from .kernel import (
    CallbackAlreadyCalledError,
    ConvoyError,
    Entry,
    IterationError,
    Policy,
    Shape,
    Trace,
    normalize,
    run,
    run_loop,
)

__all__ = [
    # Collections
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
    # Kernel
    "Entry",
    "Shape",
    "normalize",
    "Policy",
    "run",
    "run_loop",
    # Errors
    "ConvoyError",
    "IterationError",
    "CallbackAlreadyCalledError",
    # Tracing
    "Trace",
]
