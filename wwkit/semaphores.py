"""Counting semaphores with delayed, clock-driven signals."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable

from wwkit.avl import AvlTree

_log = logging.getLogger(__name__)

# A count at this value cannot grow any further.
_SATURATED = (1 << 64) - 1


@dataclass
class Semaphore:
    """A counter plus the pids blocked on it, most recent last."""

    count: int = 0
    waiting: list[int] = field(default_factory=list)
    privileged: bool = False


class _Alarm:
    __slots__ = ("semaphore_id", "expiration")

    def __init__(self, semaphore_id: int, expiration: int) -> None:
        self.semaphore_id = semaphore_id
        self.expiration = expiration

    def __lt__(self, other: _Alarm) -> bool:
        return self.expiration < other.expiration


class SemaphoreRegistry:
    """Numbered semaphores shared by all tasks.

    ``clock`` returns the current time in microseconds. ``wake`` is called
    with the pid of every task that a signal releases.
    """

    def __init__(self, clock: Callable[[], int], wake: Callable[[int], None]) -> None:
        self._clock = clock
        self._wake = wake
        self._semaphores: dict[int, Semaphore] = {}
        self._ids = itertools.count()
        self._alarms: AvlTree[_Alarm] = AvlTree()

    def create(self, init: int) -> int:
        """Create a semaphore with count ``init`` and return its id."""
        semaphore_id = next(self._ids)
        self._semaphores[semaphore_id] = Semaphore(count=init)
        return semaphore_id

    def delete(self, semaphore_id: int) -> None:
        """Remove a semaphore that no task is waiting on."""
        semaphore = self.get(semaphore_id)
        if semaphore.waiting:
            raise RuntimeError(f"semaphore {semaphore_id} has waiting tasks")
        del self._semaphores[semaphore_id]

    def get(self, semaphore_id: int) -> Semaphore:
        """Return the semaphore; raise KeyError if there is none."""
        try:
            return self._semaphores[semaphore_id]
        except KeyError:
            _log.debug("semaphore %s not found", semaphore_id)
            raise KeyError(semaphore_id) from None

    def wait(self, semaphore_id: int, pid: int) -> bool:
        """Take one unit for ``pid``.

        Return True if it was taken at once, False if ``pid`` was queued and
        must block until a signal wakes it.
        """
        semaphore = self.get(semaphore_id)
        if semaphore.count > 0:
            semaphore.count -= 1
            return True
        semaphore.waiting.append(pid)
        return False

    def signal(self, semaphore_id: int, count: int = 1) -> bool:
        """Release ``count`` units, waking the most recent waiters first.

        Return False when the count is saturated and nobody waits.
        """
        return self._signal(self.get(semaphore_id), count)

    def _signal(self, semaphore: Semaphore, count: int = 1) -> bool:
        if semaphore.count >= _SATURATED and not semaphore.waiting:
            return False
        while count > 0 and semaphore.waiting:
            pid = semaphore.waiting.pop()
            self._wake(pid)
            count -= 1
        semaphore.count += count
        return True

    def signal_after(self, semaphore_id: int, microseconds: int) -> None:
        """Arrange one signal once ``microseconds`` have passed."""
        self.get(semaphore_id)
        self._alarms.insert(_Alarm(semaphore_id, self._clock() + microseconds))

    def fire_expired(self) -> list[int]:
        """Signal every semaphore whose alarm is due; return their ids in order.

        Alarms of semaphores deleted in the meantime are dropped.
        """
        now = self._clock()
        fired: list[int] = []
        while self._alarms and self._alarms.smallest().data.expiration <= now:
            node = self._alarms.smallest()
            semaphore_id = node.data.semaphore_id
            self._alarms.remove(node)
            semaphore = self._semaphores.get(semaphore_id)
            if semaphore is None:
                continue
            self._signal(semaphore)
            fired.append(semaphore_id)
        return fired

    def __contains__(self, semaphore_id: object) -> bool:
        return semaphore_id in self._semaphores