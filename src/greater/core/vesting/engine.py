"""
Token vesting engine.

Holds a single pool of one fungible asset and releases it to beneficiaries
under per-beneficiary schedules. Guarantees:
- A beneficiary never receives more than has vested
- The administrator can only withdraw what no unrevoked schedule still owes
- Revocation pays out everything vested to date and forfeits the rest

Every write operation runs as one transaction: state is mutated first, the
external transfer is issued last, and any failure (including a failed
transfer) restores the pre-operation state.
"""

from __future__ import annotations

import dataclasses
import hashlib
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Protocol, Sequence

from ..contracts.ownable import ZERO_ADDRESS, Initializable, Ownable
from ..vesting_exceptions import (
    ForeignAssetGuardError,
    InsufficientTokenError,
    InvalidRevokeError,
    NotEnoughFundsError,
    OnlyBeneficiaryAndOwnerError,
    TransferFailedError,
    VestingValidationError,
)
from ..vesting_metrics import VestingMetrics
from .allocation import Allocation
from .beneficiary_index import BeneficiaryIndex, compute_schedule_id
from .calculator import compute_releasable_amount, compute_vested_amount
from .schedule import VestingEvent, VestingSchedule
from .schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

UINT256_MAX = 2**256 - 1


class VestingAsset(Protocol):
    """Value-transfer collaborator consumed by the engine."""

    address: str

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...


def _require_int(value: Any, field: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise VestingValidationError(f"{field} must be an integer", details={field: value})
    if value < minimum:
        raise VestingValidationError(f"{field} must be >= {minimum}", details={field: value})
    if value > UINT256_MAX:
        raise VestingValidationError(f"{field} exceeds uint256", details={field: value})
    return value


class TokenVestingBase(Ownable, Initializable):
    """
    Release/revoke/withdraw engine over a Schedule Store and Beneficiary Index.

    Args:
        token: Managed asset (balance_of / transfer)
        owner: Administrator address
        address: Address the engine holds its balance under
        time_provider: Callable returning the current Unix timestamp
        metrics: Optional VestingMetrics sink
    """

    def __init__(
        self,
        token: VestingAsset,
        owner: str,
        address: str | None = None,
        time_provider: Callable[[], int] | None = None,
        metrics: VestingMetrics | None = None,
    ) -> None:
        token_address = self._normalize(getattr(token, "address", "") if token is not None else "")
        if not token_address or token_address == ZERO_ADDRESS:
            raise VestingValidationError("TokenVesting: token address is zero")

        Ownable.__init__(self, owner)
        Initializable.__init__(self)

        self.token = token
        self.address = self._normalize(address) if address else self._derive_address(token_address)
        self.store = ScheduleStore()
        self.index = BeneficiaryIndex()
        self.events: list[VestingEvent] = []
        self._transaction_depth = 0
        self.metrics = metrics or VestingMetrics()
        self._time_provider = time_provider or (lambda: int(time.time()))

        logger.info(
            "Token vesting deployed",
            extra={
                "event": "vesting.deployed",
                "address": self.address,
                "token": token_address,
                "owner": self.owner[:10],
                "deterministic_time": bool(time_provider),
            },
        )

    def _derive_address(self, token_address: str) -> str:
        seed = f"{self.__class__.__name__}:{token_address}:{time.time_ns()}".encode()
        return "0x" + hashlib.sha3_256(seed).digest()[-20:].hex()

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    # ==================== Transactions ====================

    def snapshot(self) -> dict[str, Any]:
        """
        Capture a rollback point.

        Store and index changes are journaled as they happen, so a snapshot
        holds journal positions rather than copies of every schedule.
        """
        return {
            "store": self.store.checkpoint(),
            "index": self.index.checkpoint(),
            "init_state": self.init_state,
            "owner": self.owner,
            "event_count": len(self.events),
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        """Roll engine state back to a point captured by snapshot()."""
        self.store.rollback(snapshot["store"])
        self.index.rollback(snapshot["index"])
        self.init_state = snapshot["init_state"]
        self.owner = snapshot["owner"]
        del self.events[snapshot["event_count"]:]

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        state = self.snapshot()
        self._transaction_depth += 1
        try:
            yield
        except Exception as exc:
            self.restore(state)
            self.metrics.record_rejection(operation, type(exc).__name__)
            logger.warning(
                "Vesting operation rejected: %s",
                exc,
                extra={"event": f"vesting.{operation}_rejected", "error_type": type(exc).__name__},
            )
            raise
        finally:
            self._transaction_depth -= 1
        if self._transaction_depth == 0:
            self.store.commit()
            self.index.commit()
        self.metrics.update_totals(self.store.committed, self.store.total_released)

    def _transfer(self, asset: VestingAsset, recipient: str, amount: int) -> None:
        if asset.transfer(self.address, recipient, amount) is False:
            raise TransferFailedError(
                "TokenVesting: token transfer failed",
                details={"recipient": recipient, "amount": amount},
            )

    def _emit(self, event_type: str, **args: Any) -> None:
        self.events.append(VestingEvent(event_type=event_type, args=args, timestamp=self._current_time()))

    # ==================== Schedule Creation ====================

    def create_vesting_schedule(
        self,
        caller: str,
        beneficiary: str,
        name: str,
        start: int,
        cliff_units: int,
        number_of_slices: int,
        slice_period_seconds: int,
        revocable: bool,
        amount: int,
    ) -> str:
        """
        Create one schedule funded from the free balance (owner only).

        Returns:
            The new schedule id

        Raises:
            AuthorizationError: If caller is not the owner
            VestingValidationError: If parameters are malformed
            InsufficientTokenError: If the free balance cannot cover amount
        """
        self._require_owner(caller, "create_vesting_schedule")
        with self._transaction("create_vesting_schedule"):
            self._validate_schedule(beneficiary, start, cliff_units, number_of_slices, slice_period_seconds, amount)
            self._require_free_balance(amount)
            schedule = self._create_schedule(
                beneficiary, name, start, cliff_units, number_of_slices, slice_period_seconds, revocable, amount
            )
        return schedule.schedule_id

    def initialize_schedules(
        self,
        caller: str,
        grants: Sequence[tuple[str, Allocation]],
        start: int,
        slice_period_seconds: int,
        decimals: int = 0,
    ) -> list[str]:
        """
        One-shot batch creation of the initial schedules (owner only).

        Args:
            caller: Address calling (must be owner)
            grants: (beneficiary, allocation) pairs, created in order
            start: Start timestamp shared by every schedule
            slice_period_seconds: Length of one cliff/slice unit
            decimals: Scaling from whole-token allocation amounts to base units

        Returns:
            Created schedule ids in order

        Raises:
            AlreadyInitializedError: If called more than once
            InsufficientTokenError: If the held balance is below the batch total
        """
        self._require_owner(caller, "initialize")
        self._require_not_initialized()
        with self._transaction("initialize"):
            if not grants:
                raise VestingValidationError("TokenVesting: no allocations to initialize")

            amounts = [allocation.base_units(decimals) for _, allocation in grants]
            for (beneficiary, allocation), amount in zip(grants, amounts):
                self._validate_schedule(
                    beneficiary, start, allocation.cliff_months, allocation.slice_months, slice_period_seconds, amount
                )
            total = sum(amounts)
            self._require_free_balance(total)

            created = [
                self._create_schedule(
                    beneficiary,
                    allocation.name,
                    start,
                    allocation.cliff_months,
                    allocation.slice_months,
                    slice_period_seconds,
                    allocation.revocable,
                    amount,
                )
                for (beneficiary, allocation), amount in zip(grants, amounts)
            ]
            self._mark_initialized()
            self._emit("Initialized", count=len(created), total_amount=total)

        logger.info(
            "Token vesting initialized",
            extra={"event": "vesting.initialized", "schedules": len(created), "total_amount": total},
        )
        return [schedule.schedule_id for schedule in created]

    def _validate_schedule(
        self,
        beneficiary: str,
        start: int,
        cliff_units: int,
        number_of_slices: int,
        slice_period_seconds: int,
        amount: int,
    ) -> None:
        beneficiary_norm = self._normalize(beneficiary)
        if not beneficiary_norm or beneficiary_norm == ZERO_ADDRESS:
            raise VestingValidationError("TokenVesting: beneficiary is zero address")
        _require_int(start, "start")
        _require_int(cliff_units, "cliff_units")
        _require_int(number_of_slices, "number_of_slices", minimum=1)
        _require_int(slice_period_seconds, "slice_period_seconds", minimum=1)
        _require_int(amount, "amount", minimum=1)

    def _require_free_balance(self, amount: int) -> None:
        available = self.get_withdrawable_amount()
        if available < amount:
            raise InsufficientTokenError(
                "TokenVesting: insufficient token balance for vesting schedules",
                required=amount,
                available=available,
                details={"required": amount, "available": available},
            )

    def _create_schedule(
        self,
        beneficiary: str,
        name: str,
        start: int,
        cliff_units: int,
        number_of_slices: int,
        slice_period_seconds: int,
        revocable: bool,
        amount: int,
    ) -> VestingSchedule:
        beneficiary_norm = self._normalize(beneficiary)
        schedule_id = self.index.register(beneficiary_norm)
        schedule = VestingSchedule(
            schedule_id=schedule_id,
            beneficiary=beneficiary_norm,
            name=name,
            start=start,
            cliff=start + cliff_units * slice_period_seconds,
            number_of_slices=number_of_slices,
            slice_period_seconds=slice_period_seconds,
            revocable=bool(revocable),
            amount_total=amount,
        )
        self.store.add(schedule)
        self.metrics.record_created()
        self._emit("VestingScheduleCreated", schedule_id=schedule_id, beneficiary=beneficiary_norm, amount=amount)
        logger.info(
            "Vesting schedule %s created for %s",
            schedule_id[:10],
            beneficiary_norm[:10],
            extra={
                "event": "vesting.schedule_created",
                "schedule_name": name,
                "amount": amount,
                "cliff": schedule.cliff,
                "end": schedule.end,
            },
        )
        return schedule

    # ==================== Release / Revoke / Withdraw ====================

    def release(self, caller: str, schedule_id: str, amount: int) -> int:
        """
        Release vested tokens to the schedule's beneficiary.

        Args:
            caller: Beneficiary or owner
            schedule_id: Schedule to release from
            amount: Amount to release

        Returns:
            Amount released

        Raises:
            ScheduleNotFoundError: If the schedule does not exist
            OnlyBeneficiaryAndOwnerError: If caller is neither beneficiary nor owner
            NotEnoughFundsError: If amount is zero or exceeds the releasable amount
        """
        with self._transaction("release"):
            schedule = self.store.get(schedule_id)
            if self._normalize(caller) != schedule.beneficiary and not self.is_owner(caller):
                raise OnlyBeneficiaryAndOwnerError(details={"schedule_id": schedule_id, "caller": caller})

            if isinstance(amount, bool) or not isinstance(amount, int):
                raise VestingValidationError("amount must be an integer", details={"amount": amount})
            releasable = compute_releasable_amount(schedule, self._current_time())
            if amount <= 0 or amount > releasable:
                raise NotEnoughFundsError(
                    "TokenVesting: cannot release tokens, not enough vested tokens",
                    requested=amount,
                    available=releasable,
                    details={"schedule_id": schedule_id, "requested": amount, "releasable": releasable},
                )

            self.store.record_release(schedule, amount)
            self._transfer(self.token, schedule.beneficiary, amount)
            self._emit("Released", schedule_id=schedule_id, amount=amount)

        self.metrics.record_release(amount)
        logger.info(
            "Released %s tokens for schedule %s",
            amount,
            schedule_id[:10],
            extra={"event": "vesting.released", "beneficiary": schedule.beneficiary[:10]},
        )
        return amount

    def revoke(self, caller: str, schedule_id: str) -> int:
        """
        Revoke a schedule (owner only).

        Pays the beneficiary everything vested so far, then freezes
        ``amount_total`` at ``released`` so the remainder becomes withdrawable.

        Returns:
            Amount paid out to the beneficiary at revocation

        Raises:
            AuthorizationError: If caller is not the owner
            InvalidRevokeError: If the schedule is not revocable or already revoked
        """
        self._require_owner(caller, "revoke")
        with self._transaction("revoke"):
            schedule = self.store.get(schedule_id)
            if not schedule.revocable:
                raise InvalidRevokeError(
                    "TokenVesting: vesting is not revocable", details={"schedule_id": schedule_id}
                )
            if schedule.revoked:
                raise InvalidRevokeError(
                    "TokenVesting: vesting schedule revoked", details={"schedule_id": schedule_id}
                )

            vested = compute_releasable_amount(schedule, self._current_time())
            if vested > 0:
                self.store.record_release(schedule, vested)
            forfeited = self.store.record_forfeit(schedule)
            if vested > 0:
                self._transfer(self.token, schedule.beneficiary, vested)
            self._emit("Revoked", schedule_id=schedule_id, released=vested, forfeited=forfeited)

        self.metrics.record_release(vested)
        self.metrics.record_revocation(forfeited)
        logger.info(
            "Revoked schedule %s",
            schedule_id[:10],
            extra={"event": "vesting.revoked", "settled": vested, "forfeited": forfeited},
        )
        return vested

    def withdraw(self, caller: str, amount: int) -> int:
        """
        Withdraw free (uncommitted) tokens to the owner.

        Raises:
            AuthorizationError: If caller is not the owner
            NotEnoughFundsError: If amount is zero or exceeds the withdrawable amount
        """
        self._require_owner(caller, "withdraw")
        with self._transaction("withdraw"):
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise VestingValidationError("amount must be an integer", details={"amount": amount})
            withdrawable = self.get_withdrawable_amount()
            if amount <= 0 or amount > withdrawable:
                raise NotEnoughFundsError(
                    "TokenVesting: not enough withdrawable funds",
                    requested=amount,
                    available=withdrawable,
                    details={"requested": amount, "withdrawable": withdrawable},
                )
            self._transfer(self.token, self.owner, amount)
            self._emit("Withdrawn", recipient=self.owner, amount=amount)

        self.metrics.record_withdrawal(amount)
        logger.info("Withdrew %s free tokens", amount, extra={"event": "vesting.withdrawn"})
        return amount

    def withdraw_mistaken_transfered_token(self, caller: str, token: VestingAsset, amount: int) -> int:
        """
        Sweep a foreign token accidentally sent to the engine (owner only).

        Raises:
            VestingValidationError: If ``token`` has no usable address
            ForeignAssetGuardError: If ``token`` is the managed asset
        """
        self._require_owner(caller, "withdraw_mistaken_transfered_token")
        with self._transaction("withdraw_mistaken_transfered_token"):
            raw_address = getattr(token, "address", None)
            if token is None or not isinstance(raw_address, str) or not callable(getattr(token, "transfer", None)):
                raise VestingValidationError(
                    "TokenVesting: foreign token must be an asset with an address",
                    details={"token": repr(token)[:64]},
                )
            token_address = self._normalize(raw_address)
            if not token_address or token_address == ZERO_ADDRESS:
                raise VestingValidationError(
                    "TokenVesting: foreign token address is zero", details={"token": token_address}
                )
            if token is self.token or token_address == self._normalize(self.token.address):
                raise ForeignAssetGuardError(
                    "TokenVesting: cannot withdraw the vesting token",
                    details={"token": token_address},
                )
            _require_int(amount, "amount")
            self._transfer(token, self.owner, amount)
            self._emit("MistakenTokenWithdrawn", token=token_address, recipient=self.owner, amount=amount)

        logger.info(
            "Swept %s mistaken tokens",
            amount,
            extra={"event": "vesting.mistaken_token_withdrawn", "token": token_address},
        )
        return amount

    # ==================== Views ====================

    def get_token(self) -> VestingAsset:
        return self.token

    def get_current_time(self) -> int:
        return self._current_time()

    def get_vesting_schedules_count(self) -> int:
        return len(self.store)

    def get_vesting_id_at_index(self, index: int) -> str:
        return self.store.id_at_index(index)

    def get_vesting_ids(self) -> list[str]:
        return self.store.ids()

    def get_vesting_schedule(self, schedule_id: str) -> VestingSchedule:
        """Return a copy of the schedule; raises ScheduleNotFoundError if absent."""
        return dataclasses.replace(self.store.get(schedule_id))

    def get_vesting_schedules_count_by_beneficiary(self, beneficiary: str) -> int:
        return self.index.count(beneficiary)

    def get_vesting_schedule_by_address_and_index(self, holder: str, index: int) -> VestingSchedule:
        return self.get_vesting_schedule(self.index.id_at(holder, index))

    def get_last_vesting_schedule_for_holder(self, holder: str) -> VestingSchedule:
        return self.get_vesting_schedule(self.index.last_id(holder))

    def compute_vesting_schedule_id_for_address_and_index(self, holder: str, index: int) -> str:
        return compute_schedule_id(self._normalize(holder), index)

    def compute_next_vesting_schedule_id_for_holder(self, holder: str) -> str:
        return self.index.next_id(self._normalize(holder))

    def compute_releasable_amount(self, schedule_id: str, current_time: int | None = None) -> int:
        schedule = self.store.get(schedule_id)
        if current_time is None:
            current_time = self._current_time()
        return compute_releasable_amount(schedule, current_time)

    def get_vested_amount(self, schedule_id: str, current_time: int | None = None) -> int:
        schedule = self.store.get(schedule_id)
        if current_time is None:
            current_time = self._current_time()
        return compute_vested_amount(schedule, current_time)

    def get_vesting_schedules_total_amount(self) -> int:
        return self.store.total_amount

    def get_vesting_schedules_total_released(self) -> int:
        return self.store.total_released

    def get_withdrawable_amount(self) -> int:
        return max(0, self.token.balance_of(self.address) - self.store.committed)

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "owner": self.owner,
            "token": self._normalize(self.token.address),
            "init_state": self.init_state.value,
            "store": self.store.to_dict(),
            "index": self.index.to_dict(),
        }


__all__ = ["TokenVestingBase", "VestingAsset"]
