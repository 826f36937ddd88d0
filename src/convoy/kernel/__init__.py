"""Kernel layer - the iteration engine and its building blocks."""

from convoy.kernel.collection import Entry, Shape, normalize
from convoy.kernel.errors import CallbackAlreadyCalledError, ConvoyError, IterationError
from convoy.kernel.guard import CompletionGuard, arm, report_exception, report_violation
from convoy.kernel.loop import LoopDriver, LoopState, run_loop
from convoy.kernel.policy import Policy
from convoy.kernel.scheduler import Assembly, Iteration, run
from convoy.kernel.stats import IterationStats
from convoy.kernel.trace import Evidence, Trace

__all__ = [
    # Collection adapter
    "Entry",
    "Shape",
    "normalize",
    # Completion guard
    "CompletionGuard",
    "arm",
    "report_exception",
    "report_violation",
    # Scheduler
    "Policy",
    "Assembly",
    "Iteration",
    "IterationStats",
    "run",
    # Loop driver
    "LoopDriver",
    "LoopState",
    "run_loop",
    # Errors
    "ConvoyError",
    "IterationError",
    "CallbackAlreadyCalledError",
    # Tracing
    "Evidence",
    "Trace",
]
