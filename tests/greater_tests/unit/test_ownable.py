"""
Unit tests for administrator access control, the initialization guard and
engine serialization.
"""

import pytest

from greater.core.contracts.ownable import Initializable, InitState, Ownable
from greater.core.vesting.beneficiary_index import BeneficiaryIndex
from greater.core.vesting.schedule_store import ScheduleStore
from greater.core.vesting_exceptions import (
    AlreadyInitializedError,
    AuthorizationError,
    VestingValidationError,
)

from greater_tests.vesting_fixtures import OWNER, TREASURY_BENEFICIARY, USER, tokens


class TestOwnable:
    def test_owner_is_normalized(self):
        ownable = Ownable("  " + OWNER.upper().replace("0X", "0x") + " ")
        assert ownable.owner == OWNER
        assert ownable.is_owner(OWNER)
        assert not ownable.is_owner(USER)
        assert not ownable.is_owner("")

    @pytest.mark.parametrize("owner", ["", None, "0x" + "0" * 40])
    def test_zero_owner_rejected(self, owner):
        with pytest.raises(VestingValidationError):
            Ownable(owner)

    def test_transfer_ownership(self, initialized_vesting):
        initialized_vesting.transfer_ownership(OWNER, USER)
        assert initialized_vesting.owner == USER
        with pytest.raises(AuthorizationError):
            initialized_vesting.withdraw(OWNER, 1)

    def test_transfer_ownership_not_owner(self, initialized_vesting):
        with pytest.raises(AuthorizationError, match="Ownable: caller is not the owner"):
            initialized_vesting.transfer_ownership(USER, USER)
        assert initialized_vesting.owner == OWNER

    def test_transfer_ownership_to_zero(self, initialized_vesting):
        with pytest.raises(VestingValidationError):
            initialized_vesting.transfer_ownership(OWNER, "0x" + "0" * 40)


class TestInitializable:
    def test_one_way_transition(self):
        guard = Initializable()
        assert guard.init_state is InitState.UNINITIALIZED
        guard._mark_initialized()
        assert guard.initialized
        with pytest.raises(AlreadyInitializedError):
            guard._mark_initialized()


class TestSerialization:
    def test_engine_to_dict(self, initialized_vesting, token):
        state = initialized_vesting.to_dict()

        assert state["owner"] == OWNER
        assert state["token"] == token.address
        assert state["init_state"] == "initialized"

        store = ScheduleStore.from_dict(state["store"])
        index = BeneficiaryIndex.from_dict(state["index"])
        assert store.ids() == initialized_vesting.get_vesting_ids()
        assert index.count(TREASURY_BENEFICIARY) == 1
        assert store.get(index.last_id(TREASURY_BENEFICIARY)).amount_total == tokens(300_000_000)
