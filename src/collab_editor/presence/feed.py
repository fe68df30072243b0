"""Inbound remote cursor events and a simulated collaborator feed."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from collab_editor.document.store import utc_now
from collab_editor.runtime import telemetry
from collab_editor.runtime.scheduler import ScheduledTask, TaskScheduler

from .cursors import CursorRegistry, UnknownUserError, UserId


@dataclass(frozen=True, slots=True)
class CursorUpdate:
    user_id: UserId
    offset: int
    timestamp: datetime


def apply_cursor_updates(
    registry: CursorRegistry, updates: Iterable[CursorUpdate]
) -> int:
    """Apply updates in arrival order; unknown users are skipped."""

    applied = 0
    for update in updates:
        try:
            registry.update_cursor(
                update.user_id, update.offset, timestamp=update.timestamp
            )
        except UnknownUserError:
            telemetry.record_event(
                "cursor.update_dropped",
                level="warning",
                data={"user": update.user_id, "offset": update.offset},
            )
            continue
        applied += 1
    return applied


class SimulatedCursorFeed:
    """Stand-in for a real presence channel.

    Every ``interval_ms`` it may move one random active remote user to a
    random offset. The produced ``CursorUpdate`` goes to subscribers, which
    are expected to apply it to the registry.
    """

    def __init__(
        self,
        registry: CursorRegistry,
        scheduler: TaskScheduler,
        *,
        interval_ms: int = 3000,
        move_probability: float = 0.3,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.registry = registry
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.move_probability = move_probability
        self.rng = rng or random.Random()
        self._subscribers: List[Callable[[CursorUpdate], None]] = []
        self._task: Optional[ScheduledTask] = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.pending

    def subscribe(self, callback: Callable[[CursorUpdate], None]) -> None:
        self._subscribers.append(callback)

    def start(self) -> None:
        if self.running:
            return
        self._schedule()

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()

    def tick(self) -> Optional[CursorUpdate]:
        """Roll once and emit an update if a user moved."""

        if self.rng.random() >= self.move_probability:
            return None
        candidates = self.registry.remote_users()
        if not candidates:
            return None
        user = self.rng.choice(candidates)
        length = len(self.registry.content())
        update = CursorUpdate(
            user_id=user.id,
            offset=self.rng.randrange(length) if length else 0,
            timestamp=utc_now(),
        )
        for callback in list(self._subscribers):
            callback(update)
        return update

    def _schedule(self) -> None:
        self._task = self.scheduler.schedule(
            self.interval_ms, self._on_interval, name="cursor_feed"
        )

    def _on_interval(self) -> None:
        self.tick()
        if self._task is not None:
            self._schedule()


__all__ = ["CursorUpdate", "SimulatedCursorFeed", "apply_cursor_updates"]
