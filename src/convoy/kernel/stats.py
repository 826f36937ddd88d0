"""Pending-state snapshot for an iteration - pure data definition."""

from __future__ import annotations

from pydantic import BaseModel


class IterationStats(BaseModel):
    """Counters of one scheduler run."""

    policy: str
    total: int
    started: int = 0
    finished: int = 0
    in_flight: int = 0
    halted: bool = False
    failed: bool = False

    @property
    def unstarted(self) -> int:
        return self.total - self.started
