"""Deployment-time allocation plan."""

from __future__ import annotations

from typing import NamedTuple


class Allocation(NamedTuple):
    """One named slot of the initial distribution.

    Amounts are whole tokens; cliff and slices are counted in slice periods.
    """

    name: str
    amount: int
    cliff_months: int
    slice_months: int
    revocable: bool = True

    def base_units(self, decimals: int) -> int:
        return self.amount * 10**decimals


LIQUIDITY = Allocation("Liquidity", 150_000_000, cliff_months=0, slice_months=3)
CORE_CONTRIBUTORS = Allocation("Core Contributors", 150_000_000, cliff_months=6, slice_months=12)
TREASURY = Allocation("Treasury", 300_000_000, cliff_months=6, slice_months=12)
PROTOCOL_REWARDS = Allocation("Protocol Rewards", 200_000_000, cliff_months=12, slice_months=24)
TEAM = Allocation("Team", 175_000_000, cliff_months=6, slice_months=24)

DEFAULT_ALLOCATIONS: tuple[Allocation, ...] = (
    LIQUIDITY,
    CORE_CONTRIBUTORS,
    TREASURY,
    PROTOCOL_REWARDS,
    TEAM,
)
