"""Cancellable delayed callbacks polled by the host event loop.

Nothing here starts threads or sleeps. A host (the Textual app, or a test
advancing a ``ManualClock``) calls ``TaskScheduler.run_due`` periodically and
every task whose deadline has passed fires exactly once.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from collab_editor.runtime import telemetry

PENDING = "pending"
FIRED = "fired"
CANCELLED = "cancelled"


class Clock(Protocol):
    def now(self) -> float:
        """Current time in milliseconds."""
        ...


class MonotonicClock:
    def now(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock:
    """Clock that only moves when told to. Times are in milliseconds."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)

    def now(self) -> float:
        return self._now

    def advance_ms(self, milliseconds: float) -> float:
        if milliseconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += milliseconds
        return self._now

    def advance(self, seconds: float) -> float:
        return self.advance_ms(seconds * 1000.0)


@dataclass(eq=False)
class ScheduledTask:
    name: str
    deadline: float
    callback: Callable[[], Any]
    generation: int
    state: str = PENDING
    _scheduler: Optional["TaskScheduler"] = field(default=None, repr=False)

    @property
    def pending(self) -> bool:
        return self.state == PENDING

    def cancel(self) -> bool:
        """Invalidate the task; returns ``True`` if it had not run yet."""

        if self.state != PENDING:
            return False
        self.state = CANCELLED
        if self._scheduler is not None:
            self._scheduler._forget(self)
        return True


class TaskScheduler:
    """Owns pending tasks keyed by generation and fires them when due."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock: Clock = clock or MonotonicClock()
        self._pending: Dict[int, ScheduledTask] = {}
        self._generation = 0

    def schedule(
        self, delay_ms: float, callback: Callable[[], Any], *, name: str = "task"
    ) -> ScheduledTask:
        if delay_ms < 0:
            raise ValueError("delay_ms cannot be negative")
        self._generation += 1
        task = ScheduledTask(
            name=name,
            deadline=self.clock.now() + delay_ms,
            callback=callback,
            generation=self._generation,
            _scheduler=self,
        )
        self._pending[task.generation] = task
        return task

    def cancel(self, task: Optional[ScheduledTask]) -> bool:
        if task is None:
            return False
        return task.cancel()

    def cancel_all(self) -> int:
        tasks = list(self._pending.values())
        for task in tasks:
            task.cancel()
        return len(tasks)

    def pending(self) -> List[ScheduledTask]:
        return sorted(self._pending.values(), key=_order)

    def next_deadline(self) -> Optional[float]:
        if not self._pending:
            return None
        return min(task.deadline for task in self._pending.values())

    def run_due(self) -> List[ScheduledTask]:
        """Fire every task whose deadline has passed, earliest first."""

        now = self.clock.now()
        due = sorted(
            (task for task in self._pending.values() if task.deadline <= now),
            key=_order,
        )
        fired: List[ScheduledTask] = []
        for task in due:
            # an earlier callback may have cancelled this one
            if not task.pending:
                continue
            self.fire(task)
            fired.append(task)
        return fired

    def fire(self, task: ScheduledTask) -> bool:
        """Run ``task`` now regardless of its deadline."""

        if not task.pending:
            return False
        task.state = FIRED
        self._forget(task)
        with telemetry.span(
            name=f"scheduler::{task.name}",
            metadata={"generation": task.generation},
        ):
            task.callback()
        return True

    def _forget(self, task: ScheduledTask) -> None:
        self._pending.pop(task.generation, None)


def _order(task: ScheduledTask) -> tuple[float, int]:
    return (task.deadline, task.generation)


class Debouncer:
    """Runs ``callback`` once the quiet interval after the last trigger ends.

    Each ``trigger`` cancels the previously scheduled call, so only the most
    recent one can fire.
    """

    def __init__(
        self,
        scheduler: TaskScheduler,
        interval_ms: float,
        callback: Callable[..., Any],
        *,
        name: str = "debounce",
    ) -> None:
        if interval_ms < 0:
            raise ValueError("interval_ms cannot be negative")
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.callback = callback
        self.name = name
        self._task: Optional[ScheduledTask] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and self._task.pending

    def trigger(self, *args: Any, **kwargs: Any) -> ScheduledTask:
        self.cancel()
        self._task = self.scheduler.schedule(
            self.interval_ms,
            lambda: self.callback(*args, **kwargs),
            name=self.name,
        )
        return self._task

    def cancel(self) -> bool:
        task, self._task = self._task, None
        return task.cancel() if task is not None else False

    def flush(self) -> bool:
        """Fire the pending call immediately; ``False`` if nothing was pending."""

        task, self._task = self._task, None
        if task is None:
            return False
        return self.scheduler.fire(task)


__all__ = [
    "CANCELLED",
    "Clock",
    "Debouncer",
    "FIRED",
    "ManualClock",
    "MonotonicClock",
    "PENDING",
    "ScheduledTask",
    "TaskScheduler",
]
