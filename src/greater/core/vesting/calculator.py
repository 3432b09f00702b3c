"""
Vesting calculator.

Pure functions over a schedule and a timestamp. Vesting resolves in whole
slices measured from ``start``; there is no interpolation inside a slice.
"""

from __future__ import annotations

from .schedule import VestingSchedule


def compute_vested_amount(schedule: VestingSchedule, current_time: int) -> int:
    """
    Total amount vested at ``current_time``, released or not.

    Args:
        schedule: Schedule to evaluate
        current_time: Unix timestamp

    Returns:
        Vested amount in base units
    """
    if schedule.revoked:
        return schedule.amount_total
    if current_time < schedule.cliff:
        return 0
    if current_time >= schedule.end:
        return schedule.amount_total

    elapsed_slices = (current_time - schedule.start) // schedule.slice_period_seconds
    return schedule.amount_total * elapsed_slices // schedule.number_of_slices


def compute_releasable_amount(schedule: VestingSchedule, current_time: int) -> int:
    """
    Amount the beneficiary may release at ``current_time``.

    Revoked schedules settled everything at revocation and return 0.
    """
    if schedule.revoked:
        return 0
    return max(0, compute_vested_amount(schedule, current_time) - schedule.released)
