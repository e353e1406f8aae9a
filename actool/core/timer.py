"""Deferred power-off action.

A :class:`DeferredAction` is an immutable value: ``arm`` and ``cancel`` return
new instances and every time-dependent query takes ``now`` explicitly, so the
owner decides which clock to use.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True, slots=True)
class DeferredAction:
    """At most one pending power-off, identified by its target instant."""

    armed: bool = False
    target: Optional[datetime] = None
    description: str = ""

    def arm(self, target: datetime, description: str) -> "DeferredAction":
        """Return an armed action; any previous schedule is discarded."""
        return DeferredAction(armed=True, target=target, description=description)

    def cancel(self) -> "DeferredAction":
        return DeferredAction()

    def is_due(self, now: datetime) -> bool:
        # Closed interval: the target instant itself counts as due.
        return self.armed and self.target is not None and now >= self.target

    def remaining(self, now: datetime) -> Optional[timedelta]:
        if not self.armed or self.target is None:
            return None
        return max(self.target - now, timedelta(0))

    def describe(self, now: datetime) -> str:
        if not self.armed or self.target is None:
            return "inactive"
        if self.is_due(now):
            return "expired, pending shutdown"
        return (
            f"active, power-off in {format_duration(self.target - now)} "
            f"at {self.target:%H:%M:%S} ({self.description})"
        )


def format_duration(delta: timedelta) -> str:
    """Format a duration as ``HHhMMmSSs``, truncating sub-second parts."""

    total = max(int(delta.total_seconds()), 0)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}h{minutes:02d}m{seconds:02d}s"
