"""
Unit tests for per-engine Prometheus metrics.
"""

import pytest
from prometheus_client import CollectorRegistry

from greater.core.contracts.token_vesting import TokenVesting
from greater.core.vesting_exceptions import NotEnoughFundsError
from greater.core.vesting_metrics import VestingMetrics

from greater_tests.vesting_fixtures import (
    BENEFICIARIES,
    LIQUIDITY_BENEFICIARY,
    MONTH,
    OWNER,
    START_TIME,
    VESTING_AMOUNT,
    tokens,
)


def test_engines_get_independent_registries(token, clock):
    first = TokenVesting(token, OWNER, time_provider=clock)
    second = TokenVesting(token, OWNER, time_provider=clock)
    assert first.metrics.registry is not second.metrics.registry


def test_metrics_follow_engine_activity(token, clock):
    registry = CollectorRegistry()
    vesting = TokenVesting(
        token,
        OWNER,
        time_provider=clock,
        metrics=VestingMetrics(registry=registry),
        start_time=START_TIME,
        slice_period_seconds=MONTH,
    )
    token.transfer(OWNER, vesting.address, VESTING_AMOUNT)
    vesting.initialize(OWNER, *BENEFICIARIES)

    assert registry.get_sample_value("greater_vesting_schedules_created_total") == 5
    assert registry.get_sample_value("greater_vesting_committed_amount") == pytest.approx(float(VESTING_AMOUNT))

    liquidity_id = vesting.get_vesting_id_at_index(0)
    with pytest.raises(NotEnoughFundsError):
        vesting.release(LIQUIDITY_BENEFICIARY, liquidity_id, 1)
    assert registry.get_sample_value(
        "greater_vesting_rejected_operations_total",
        {"operation": "release", "reason": "NotEnoughFundsError"},
    ) == 1

    clock.increase_to(START_TIME + MONTH)
    vesting.release(LIQUIDITY_BENEFICIARY, liquidity_id, tokens(50_000_000))
    assert registry.get_sample_value("greater_vesting_released_amount_total") == pytest.approx(
        float(tokens(50_000_000))
    )
    assert registry.get_sample_value("greater_vesting_total_released") == pytest.approx(float(tokens(50_000_000)))

    vesting.revoke(OWNER, vesting.get_vesting_id_at_index(2))
    assert registry.get_sample_value("greater_vesting_revocations_total") == 1
    assert registry.get_sample_value("greater_vesting_forfeited_amount_total") == pytest.approx(
        float(tokens(300_000_000))
    )

    vesting.withdraw(OWNER, tokens(300_000_000))
    assert registry.get_sample_value("greater_vesting_withdrawn_amount_total") == pytest.approx(
        float(tokens(300_000_000))
    )
