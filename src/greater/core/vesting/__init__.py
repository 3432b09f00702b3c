"""
Greater Vesting Accounting.

- Schedule Store: append-only schedules with committed/released totals
- Beneficiary Index: per-holder enumeration and keccak schedule ids
- Calculator: whole-slice releasable amount over time
- Engine: release, revoke, withdraw and batch initialization
"""

from .allocation import DEFAULT_ALLOCATIONS, Allocation
from .schedule import VestingEvent, VestingSchedule
from .schedule_store import ScheduleStore
from .beneficiary_index import BeneficiaryIndex, compute_schedule_id
from .calculator import compute_releasable_amount, compute_vested_amount
from .engine import TokenVestingBase, VestingAsset

__all__ = [
    "Allocation",
    "DEFAULT_ALLOCATIONS",
    "VestingSchedule",
    "VestingEvent",
    "ScheduleStore",
    "BeneficiaryIndex",
    "compute_schedule_id",
    "compute_releasable_amount",
    "compute_vested_amount",
    "TokenVestingBase",
    "VestingAsset",
]
