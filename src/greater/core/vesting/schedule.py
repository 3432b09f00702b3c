"""
Vesting schedule record and engine events.

A schedule is created once, mutated only by release and revoke, and never
deleted. Revocation clamps ``amount_total`` down to ``released``.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class VestingSchedule:
    """
    Single beneficiary's vesting commitment.

    ``cliff`` is absolute; the vesting span is ``number_of_slices *
    slice_period_seconds`` measured from ``start``, so the cliff never moves
    the end date.
    """

    schedule_id: str
    beneficiary: str
    name: str
    start: int
    cliff: int
    number_of_slices: int
    slice_period_seconds: int
    revocable: bool
    amount_total: int
    released: int = 0
    revoked: bool = False

    @property
    def end(self) -> int:
        """Timestamp at which the whole amount has vested."""
        return self.start + self.number_of_slices * self.slice_period_seconds

    @property
    def remaining(self) -> int:
        """Amount still owed to the beneficiary (vested or not)."""
        return self.amount_total - self.released

    @property
    def completed(self) -> bool:
        return not self.revoked and self.released == self.amount_total

    @property
    def active(self) -> bool:
        return not self.revoked

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingSchedule":
        return cls(
            schedule_id=data["schedule_id"],
            beneficiary=data["beneficiary"],
            name=data.get("name", ""),
            start=int(data["start"]),
            cliff=int(data["cliff"]),
            number_of_slices=int(data["number_of_slices"]),
            slice_period_seconds=int(data["slice_period_seconds"]),
            revocable=bool(data["revocable"]),
            amount_total=int(data["amount_total"]),
            released=int(data.get("released", 0)),
            revoked=bool(data.get("revoked", False)),
        )


@dataclass
class VestingEvent:
    """Represents an event emitted by the vesting engine."""

    event_type: str  # "Initialized", "VestingScheduleCreated", "Released", "Revoked", ...
    args: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
