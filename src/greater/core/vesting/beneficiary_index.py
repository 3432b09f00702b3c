"""
Per-beneficiary schedule index and deterministic identifier derivation.

Schedule ids are keccak256 over the packed (address, uint256) pair, the same
value Solidity's ``keccak256(abi.encodePacked(holder, index))`` produces, so
the next id for a holder can be predicted before it is assigned.
"""

from __future__ import annotations

from typing import Any

from Crypto.Hash import keccak

from ..vesting_exceptions import ScheduleNotFoundError, VestingValidationError

ZERO_ADDRESS = "0x" + "0" * 40


def _keccak256(data: bytes) -> bytes:
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def _normalize(address: str) -> str:
    return address.strip().lower()


def _address_bytes(address: str) -> bytes:
    """Pack an address the way abi.encodePacked does (20 raw bytes).

    Identities that are not 0x-prefixed 20-byte hex are packed as UTF-8.
    """
    normalized = _normalize(address)
    if normalized.startswith("0x") and len(normalized) == 42:
        try:
            return bytes.fromhex(normalized[2:])
        except ValueError:
            pass
    return normalized.encode("utf-8")


def compute_schedule_id(holder: str, index: int) -> str:
    """
    Derive the schedule id for ``holder``'s ``index``-th schedule.

    Args:
        holder: Beneficiary address
        index: Zero-based per-beneficiary sequence number

    Returns:
        0x-prefixed hex keccak256 digest
    """
    if not holder:
        raise VestingValidationError("Beneficiary address cannot be empty")
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise VestingValidationError("Schedule index must be a non-negative integer")
    packed = _address_bytes(holder) + index.to_bytes(32, "big")
    return "0x" + _keccak256(packed).hex()


class BeneficiaryIndex:
    """Ordered schedule ids per beneficiary."""

    def __init__(self) -> None:
        self._holders: dict[str, list[str]] = {}
        self._registered: list[str] = []

    def count(self, holder: str) -> int:
        return len(self._holders.get(_normalize(holder), []))

    def next_id(self, holder: str) -> str:
        return compute_schedule_id(holder, self.count(holder))

    def register(self, holder: str) -> str:
        """Assign and record the next id for ``holder``."""
        schedule_id = self.next_id(holder)
        self._holders.setdefault(_normalize(holder), []).append(schedule_id)
        self._registered.append(_normalize(holder))
        return schedule_id

    def id_at(self, holder: str, index: int) -> str:
        ids = self._holders.get(_normalize(holder), [])
        if index < 0 or index >= len(ids):
            raise ScheduleNotFoundError(
                "TokenVesting: index out of bounds",
                details={"holder": _normalize(holder), "index": index, "count": len(ids)},
            )
        return ids[index]

    def last_id(self, holder: str) -> str:
        count = self.count(holder)
        if count == 0:
            raise ScheduleNotFoundError(
                f"No vesting schedule for holder {_normalize(holder)}",
                details={"holder": _normalize(holder)},
            )
        return self.id_at(holder, count - 1)

    def holders(self) -> list[str]:
        return list(self._holders)

    def checkpoint(self) -> int:
        return len(self._registered)

    def rollback(self, checkpoint: int) -> None:
        """Unregister every id assigned after ``checkpoint``, newest first."""
        while len(self._registered) > checkpoint:
            holder = self._registered.pop()
            ids = self._holders[holder]
            ids.pop()
            if not ids:
                del self._holders[holder]

    def commit(self) -> None:
        self._registered.clear()

    def to_dict(self) -> dict[str, Any]:
        return {holder: list(ids) for holder, ids in self._holders.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BeneficiaryIndex":
        index = cls()
        for holder, ids in data.items():
            for position, schedule_id in enumerate(ids):
                if compute_schedule_id(holder, position) != schedule_id:
                    raise VestingValidationError(
                        f"Schedule id {schedule_id} does not match holder {holder} index {position}"
                    )
            index._holders[_normalize(holder)] = list(ids)
        return index
