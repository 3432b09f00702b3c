"""
Property-based tests for the vesting calculator and engine.

Properties covered:
1. Vested and releasable amounts never decrease as time advances
2. Releasable is stable until a release, then drops by exactly that amount
3. Revoked schedules have nothing left to release
4. Tokens are conserved and commitments stay covered across operation sequences
"""

from __future__ import annotations

import pytest
from hypothesis import assume, given, settings, strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule

from greater.core.contracts.erc20 import ERC20Token
from greater.core.contracts.token_vesting import TokenVesting
from greater.core.vesting.allocation import Allocation
from greater.core.vesting.calculator import compute_releasable_amount, compute_vested_amount
from greater.core.vesting.schedule import VestingSchedule
from greater.core.vesting_exceptions import InvalidRevokeError, NotEnoughFundsError

pytestmark = pytest.mark.property

OWNER = "0x" + "0a" * 20
HOLDERS = ("0x" + "1c" * 20, "0x" + "2d" * 20, "0x" + "3e" * 20)
START = 1_000
PERIOD = 10

# ============================================================================
# CUSTOM STRATEGIES
# ============================================================================


@st.composite
def vesting_schedule(draw):
    """Generate well-formed schedules."""
    start = draw(st.integers(min_value=0, max_value=10**6))
    period = draw(st.integers(min_value=1, max_value=10**4))
    slices = draw(st.integers(min_value=1, max_value=48))
    cliff_units = draw(st.integers(min_value=0, max_value=slices))
    return VestingSchedule(
        schedule_id="0x01",
        beneficiary=HOLDERS[0],
        name="generated",
        start=start,
        cliff=start + cliff_units * period,
        number_of_slices=slices,
        slice_period_seconds=period,
        revocable=True,
        amount_total=draw(st.integers(min_value=1, max_value=2**128)),
    )


offsets = st.integers(min_value=-10**5, max_value=10**7)

# ============================================================================
# CALCULATOR PROPERTIES
# ============================================================================


class TestCalculatorProperties:
    @given(vesting_schedule(), offsets, offsets)
    def test_vested_is_monotonic(self, schedule, first, second):
        earlier, later = sorted((schedule.start + first, schedule.start + second))
        assert compute_vested_amount(schedule, earlier) <= compute_vested_amount(schedule, later)
        assert compute_releasable_amount(schedule, earlier) <= compute_releasable_amount(schedule, later)

    @given(vesting_schedule(), offsets)
    def test_vested_is_bounded(self, schedule, offset):
        now = schedule.start + offset
        vested = compute_vested_amount(schedule, now)
        assert 0 <= vested <= schedule.amount_total
        if now < schedule.cliff:
            assert vested == 0
        if now >= schedule.end:
            assert vested == schedule.amount_total

    @given(vesting_schedule(), offsets)
    def test_releasable_is_idempotent(self, schedule, offset):
        now = schedule.start + offset
        assert compute_releasable_amount(schedule, now) == compute_releasable_amount(schedule, now)

    @given(vesting_schedule(), offsets, st.data())
    def test_release_reduces_releasable_exactly(self, schedule, offset, data):
        now = schedule.start + offset
        releasable = compute_releasable_amount(schedule, now)
        assume(releasable > 0)
        amount = data.draw(st.integers(min_value=1, max_value=releasable))

        schedule.released += amount

        assert compute_releasable_amount(schedule, now) == releasable - amount

    @given(vesting_schedule(), offsets)
    def test_revoked_has_nothing_releasable(self, schedule, offset):
        now = schedule.start + offset
        schedule.released = compute_vested_amount(schedule, now)
        schedule.amount_total = schedule.released
        schedule.revoked = True
        assert compute_releasable_amount(schedule, now) == 0
        assert compute_releasable_amount(schedule, now + 10**9) == 0


# ============================================================================
# STATEFUL PROPERTY TESTING
# ============================================================================


class VestingStateMachine(RuleBasedStateMachine):
    """
    Drives a small engine through releases, revocations and withdrawals.

    Mirrors expected balances independently of the engine's own bookkeeping.
    """

    PLAN = (
        Allocation("Liquidity", 900, cliff_months=0, slice_months=3),
        Allocation("Treasury", 1_200, cliff_months=2, slice_months=6),
        Allocation("Grants", 700, cliff_months=1, slice_months=4, revocable=False),
    )
    SURPLUS = 333
    SUPPLY = 10_000

    def __init__(self):
        super().__init__()
        self.now = START - PERIOD
        self.token = ERC20Token(name="Token", symbol="TKN", decimals=0, owner=OWNER)
        self.token.mint(OWNER, OWNER, self.SUPPLY)
        self.vesting = TokenVesting(self.token, OWNER, time_provider=lambda: self.now)
        funding = sum(a.amount for a in self.PLAN) + self.SURPLUS
        self.token.transfer(OWNER, self.vesting.address, funding)
        self.ids = self.vesting.initialize_schedules(
            OWNER, list(zip(HOLDERS, self.PLAN)), start=START, slice_period_seconds=PERIOD
        )
        self.paid = dict.fromkeys(HOLDERS, 0)
        self.withdrawn = 0

    @rule(step=st.integers(min_value=0, max_value=3 * PERIOD))
    def advance_time(self, step):
        self.now += step

    @rule(position=st.integers(min_value=0, max_value=2), share=st.floats(min_value=0.0, max_value=1.5))
    def release(self, position, share):
        schedule_id = self.ids[position]
        releasable = self.vesting.compute_releasable_amount(schedule_id)
        amount = int(releasable * share)
        if 0 < amount <= releasable:
            self.vesting.release(HOLDERS[position], schedule_id, amount)
            self.paid[HOLDERS[position]] += amount
            assert self.vesting.compute_releasable_amount(schedule_id) == releasable - amount
        else:
            with pytest.raises(NotEnoughFundsError):
                self.vesting.release(HOLDERS[position], schedule_id, amount)

    @rule(position=st.integers(min_value=0, max_value=2))
    def revoke(self, position):
        schedule_id = self.ids[position]
        before = self.vesting.get_vesting_schedule(schedule_id)
        if not before.revocable or before.revoked:
            with pytest.raises(InvalidRevokeError):
                self.vesting.revoke(OWNER, schedule_id)
            return
        settled = self.vesting.revoke(OWNER, schedule_id)
        self.paid[HOLDERS[position]] += settled
        after = self.vesting.get_vesting_schedule(schedule_id)
        assert after.revoked
        assert after.amount_total == after.released
        assert self.vesting.compute_releasable_amount(schedule_id) == 0

    @precondition(lambda self: self.vesting.get_withdrawable_amount() > 0)
    @rule(data=st.data())
    def withdraw(self, data):
        available = self.vesting.get_withdrawable_amount()
        amount = data.draw(st.integers(min_value=1, max_value=available))
        self.vesting.withdraw(OWNER, amount)
        self.withdrawn += amount

    @rule(excess=st.integers(min_value=1, max_value=100))
    def withdraw_too_much(self, excess):
        with pytest.raises(NotEnoughFundsError):
            self.vesting.withdraw(OWNER, self.vesting.get_withdrawable_amount() + excess)

    @invariant()
    def tokens_are_conserved(self):
        total = self.token.balance_of(self.vesting.address) + self.token.balance_of(OWNER)
        total += sum(self.token.balance_of(holder) for holder in HOLDERS)
        assert total == self.SUPPLY

    @invariant()
    def payouts_match_balances(self):
        for holder in HOLDERS:
            assert self.token.balance_of(holder) == self.paid[holder]
        assert self.vesting.get_vesting_schedules_total_released() == sum(self.paid.values())

    @invariant()
    def commitments_are_covered(self):
        schedules = [self.vesting.get_vesting_schedule(i) for i in self.ids]
        committed = sum(s.amount_total - s.released for s in schedules)
        held = self.token.balance_of(self.vesting.address)
        assert held >= committed
        assert self.vesting.get_withdrawable_amount() == held - committed
        assert self.vesting.get_vesting_schedules_total_amount() == sum(s.amount_total for s in schedules)

    @invariant()
    def released_never_exceeds_total(self):
        for schedule_id in self.ids:
            schedule = self.vesting.get_vesting_schedule(schedule_id)
            assert 0 <= schedule.released <= schedule.amount_total


TestVestingState = VestingStateMachine.TestCase
TestVestingState.settings = settings(max_examples=50, stateful_step_count=30, deadline=None)
