"""
Append-only store of vesting schedules.

Keeps insertion order for global-index access next to an id lookup, plus
the aggregate counters the engine needs for free-balance accounting.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from ..vesting_exceptions import ScheduleNotFoundError, VestingValidationError
from .schedule import VestingSchedule

logger = logging.getLogger(__name__)


class ScheduleStore:
    """
    Ordered schedule container with aggregate totals.

    ``total_amount`` is the sum of ``amount_total`` over every schedule ever
    added, reduced only by forfeited remainders at revocation.
    ``total_released`` is the sum of ``released`` over every schedule.
    Their difference is what the engine still owes.
    """

    def __init__(self) -> None:
        self._ids: list[str] = []
        self._schedules: dict[str, VestingSchedule] = {}
        self.total_amount = 0
        self.total_released = 0
        # Undo records for the open transaction, newest last
        self._journal: list[tuple[Any, ...]] = []

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, schedule_id: object) -> bool:
        return schedule_id in self._schedules

    def __iter__(self) -> Iterator[VestingSchedule]:
        for schedule_id in self._ids:
            yield self._schedules[schedule_id]

    @property
    def committed(self) -> int:
        """Amount still obligated to unrevoked schedules."""
        return self.total_amount - self.total_released

    def add(self, schedule: VestingSchedule) -> None:
        if schedule.schedule_id in self._schedules:
            raise VestingValidationError(
                f"Vesting schedule {schedule.schedule_id} already exists",
                details={"schedule_id": schedule.schedule_id},
            )
        self._journal.append(("add", schedule.schedule_id))
        self._ids.append(schedule.schedule_id)
        self._schedules[schedule.schedule_id] = schedule
        self.total_amount += schedule.amount_total
        self.total_released += schedule.released

    def get(self, schedule_id: str) -> VestingSchedule:
        schedule = self._schedules.get(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(
                f"Vesting schedule {schedule_id} not found",
                details={"schedule_id": schedule_id},
            )
        return schedule

    def id_at_index(self, index: int) -> str:
        if index < 0 or index >= len(self._ids):
            raise ScheduleNotFoundError(
                "TokenVesting: index out of bounds",
                details={"index": index, "count": len(self._ids)},
            )
        return self._ids[index]

    def ids(self) -> list[str]:
        return list(self._ids)

    def record_release(self, schedule: VestingSchedule, amount: int) -> None:
        """Book ``amount`` as released against ``schedule``."""
        self._remember(schedule)
        schedule.released += amount
        self.total_released += amount

    def record_forfeit(self, schedule: VestingSchedule) -> int:
        """Clamp a revoked schedule to what it released; return the forfeited remainder."""
        self._remember(schedule)
        forfeited = schedule.amount_total - schedule.released
        schedule.amount_total = schedule.released
        schedule.revoked = True
        self.total_amount -= forfeited
        return forfeited

    # ==================== Undo Journal ====================

    def _remember(self, schedule: VestingSchedule) -> None:
        self._journal.append(
            (
                "update",
                schedule,
                schedule.released,
                schedule.amount_total,
                schedule.revoked,
                self.total_amount,
                self.total_released,
            )
        )

    def checkpoint(self) -> int:
        """Mark the current journal position for a later rollback."""
        return len(self._journal)

    def rollback(self, checkpoint: int) -> None:
        """Undo every change recorded after ``checkpoint``, newest first."""
        while len(self._journal) > checkpoint:
            entry = self._journal.pop()
            if entry[0] == "add":
                schedule = self._schedules.pop(self._ids.pop())
                self.total_amount -= schedule.amount_total
                self.total_released -= schedule.released
            else:
                _, schedule, released, amount_total, revoked, total_amount, total_released = entry
                schedule.released = released
                schedule.amount_total = amount_total
                schedule.revoked = revoked
                self.total_amount = total_amount
                self.total_released = total_released

    def commit(self) -> None:
        """Forget undo records once the outermost transaction succeeds."""
        self._journal.clear()

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedules": [self._schedules[schedule_id].to_dict() for schedule_id in self._ids],
            "total_amount": self.total_amount,
            "total_released": self.total_released,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleStore":
        store = cls()
        for entry in data.get("schedules", []):
            store.add(VestingSchedule.from_dict(entry))
        # Revoked schedules carry their clamped totals, so the sums rebuild exactly.
        expected_total = data.get("total_amount", store.total_amount)
        expected_released = data.get("total_released", store.total_released)
        if (expected_total, expected_released) != (store.total_amount, store.total_released):
            logger.warning(
                "Schedule store totals disagree with schedules; using recomputed totals",
                extra={
                    "event": "vesting.store_totals_mismatch",
                    "stored_total": expected_total,
                    "recomputed_total": store.total_amount,
                },
            )
        store.commit()
        return store
