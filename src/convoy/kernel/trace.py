"""Runtime trace for iterations - separate from the results they produce.

A ``Trace`` passed to a combinator records what the scheduler did: when an
iteration began and ended, when each entry started and finished, and any
protocol violation. Tree relationships are reconstructed only on demand via
``as_tree()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class Evidence:
    """A single event captured at runtime.

    Attributes:
        action: What happened ("iteration_begin", "element_end", ...)
        id: Sequential event id within its trace
        parent_id: Id of the enclosing event, if any
        timestamp: Wall-clock time of recording
        info: Event details (keys, policy, counters)
        duration_ms: Elapsed time for events that close a span
    """

    action: str
    id: int = 0
    parent_id: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    info: dict[str, Any] = field(default_factory=dict)
    duration_ms: float | None = None


class Trace:
    """Collects evidence events for one or more iterations.

    Single-threaded: events are recorded from event loop callbacks only.
    A disabled trace records nothing and ``record`` returns None.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._events: list[Evidence] = []
        self._next_id: int = 0

    def record(
        self,
        action: str,
        info: dict[str, Any] | None = None,
        parent_id: int | None = None,
        duration_ms: float | None = None,
    ) -> int | None:
        """Record an evidence event.

        Args:
            action: What happened
            info: Additional context
            parent_id: Id of the enclosing event for tree relationships
            duration_ms: Execution duration

        Returns:
            Event id for linking child events, or None if tracing is disabled
        """
        if not self.enabled:
            return None

        event_id = self._next_id
        self._next_id += 1
        self._events.append(
            Evidence(
                action=action,
                id=event_id,
                parent_id=parent_id,
                timestamp=datetime.now(UTC),
                info=info or {},
                duration_ms=duration_ms,
            )
        )
        return event_id

    def get_events(self) -> list[Evidence]:
        """Get all recorded events in recording order."""
        return list(self._events)

    def find_all(self, action: str | None = None, **info: Any) -> list[Evidence]:
        """Find events by action and by matching ``info`` entries."""
        return [
            ev
            for ev in self._events
            if (action is None or ev.action == action)
            and all(ev.info.get(k) == v for k, v in info.items())
        ]

    def as_tree(self) -> dict[int | None, list[int]]:
        """Reconstruct parent-child relationships.

        Returns:
            Dict mapping parent_id to list of child ids
        """
        tree: dict[int | None, list[int]] = {}
        for ev in self._events:
            tree.setdefault(ev.parent_id, []).append(ev.id)
        return tree

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        """Clear all events (for reuse)."""
        self._events.clear()
        self._next_id = 0
