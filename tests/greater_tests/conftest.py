"""
Shared fixtures for the vesting test suite.
"""

import pytest

from greater.core.contracts.erc20 import ERC20Token
from greater.core.contracts.token_vesting import TokenVesting
from greater.core.vesting.allocation import DEFAULT_ALLOCATIONS

from greater_tests.vesting_fixtures import (
    BENEFICIARIES,
    DECIMALS,
    MONTH,
    OWNER,
    START_TIME,
    TOTAL_SUPPLY,
    VESTING_AMOUNT,
    Clock,
)


@pytest.fixture
def clock():
    return Clock(START_TIME - MONTH)


@pytest.fixture
def token():
    erc20 = ERC20Token(name="Token", symbol="TKN", decimals=DECIMALS, owner=OWNER)
    erc20.mint(OWNER, OWNER, TOTAL_SUPPLY)
    return erc20


@pytest.fixture
def vesting(token, clock):
    return TokenVesting(
        token,
        OWNER,
        time_provider=clock,
        allocations=DEFAULT_ALLOCATIONS,
        start_time=START_TIME,
        slice_period_seconds=MONTH,
    )


@pytest.fixture
def funded_vesting(vesting, token):
    token.transfer(OWNER, vesting.address, VESTING_AMOUNT)
    return vesting


@pytest.fixture
def initialized_vesting(funded_vesting):
    funded_vesting.initialize(OWNER, *BENEFICIARIES)
    return funded_vesting
