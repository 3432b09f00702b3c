"""
Greater token vesting contract.

Deploys the vesting engine with the configured allocation plan: Liquidity,
Core Contributors, Treasury, Protocol Rewards and Team by default, all
starting at VESTING_START_TIME and counted in SLICE_PERIOD_SECONDS units.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from .. import config
from ..vesting.allocation import Allocation
from ..vesting.engine import TokenVestingBase, VestingAsset
from ..vesting_exceptions import VestingValidationError
from ..vesting_metrics import VestingMetrics

logger = logging.getLogger(__name__)


class TokenVesting(TokenVestingBase):
    """
    Vesting contract with a one-shot ``initialize`` over a fixed allocation plan.

    Usage:
        vesting = TokenVesting(token, owner="0xowner...")
        token.transfer(owner, vesting.address, total)
        vesting.initialize(owner, liquidity, core, treasury, rewards, team)
    """

    def __init__(
        self,
        token: VestingAsset,
        owner: str,
        address: str | None = None,
        time_provider: Callable[[], int] | None = None,
        metrics: VestingMetrics | None = None,
        allocations: Sequence[Allocation] | None = None,
        start_time: int | None = None,
        slice_period_seconds: int | None = None,
        decimals: int | None = None,
    ) -> None:
        super().__init__(token, owner, address=address, time_provider=time_provider, metrics=metrics)
        self.allocations: tuple[Allocation, ...] = tuple(
            allocations if allocations is not None else config.get_allocation_plan()
        )
        self.start_time = config.VESTING_START_TIME if start_time is None else start_time
        self.slice_period_seconds = (
            config.SLICE_PERIOD_SECONDS if slice_period_seconds is None else slice_period_seconds
        )
        if decimals is None:
            decimals = getattr(token, "decimals", config.TOKEN_DECIMALS)
        self.decimals = decimals

    @property
    def total_allocation(self) -> int:
        """Sum of the plan in base units."""
        return sum(allocation.base_units(self.decimals) for allocation in self.allocations)

    def initialize(self, caller: str, *beneficiaries: str) -> list[str]:
        """
        Create one schedule per allocation, in plan order (owner only, once).

        Args:
            caller: Address calling (must be owner)
            *beneficiaries: One beneficiary per allocation, e.g. liquidity,
                core contributors, treasury, protocol rewards, team

        Returns:
            Created schedule ids in plan order
        """
        self._require_owner(caller, "initialize")
        self._require_not_initialized()
        if len(beneficiaries) != len(self.allocations):
            raise VestingValidationError(
                f"TokenVesting: expected {len(self.allocations)} beneficiaries, got {len(beneficiaries)}",
                details={"allocations": [allocation.name for allocation in self.allocations]},
            )
        return self.initialize_schedules(
            caller,
            list(zip(beneficiaries, self.allocations)),
            start=self.start_time,
            slice_period_seconds=self.slice_period_seconds,
            decimals=self.decimals,
        )
