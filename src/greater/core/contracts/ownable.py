"""
Single-administrator access control and one-shot initialization.

Contracts pass the calling address (msg.sender) explicitly to every
privileged method; there is no ambient caller.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..vesting_exceptions import AlreadyInitializedError, AuthorizationError, VestingValidationError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40


class InitState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class Ownable:
    """Mixin granting one administrator address privileged access."""

    def __init__(self, owner: str) -> None:
        owner_norm = self._normalize(owner)
        if not owner_norm or owner_norm == ZERO_ADDRESS:
            raise VestingValidationError("Ownable: new owner is the zero address")
        self.owner = owner_norm

    def is_owner(self, caller: str) -> bool:
        return bool(caller) and self._normalize(caller) == self.owner

    def transfer_ownership(self, caller: str, new_owner: str) -> bool:
        """Hand the administrator role to ``new_owner`` (owner only)."""
        self._require_owner(caller, "transfer_ownership")
        new_norm = self._normalize(new_owner)
        if not new_norm or new_norm == ZERO_ADDRESS:
            raise VestingValidationError("Ownable: new owner is the zero address")
        previous = self.owner
        self.owner = new_norm
        logger.info(
            "Ownership transferred",
            extra={"event": "ownable.transferred", "previous": previous[:10], "owner": new_norm[:10]},
        )
        return True

    def _require_owner(self, caller: str, operation: str = "") -> None:
        if not self.is_owner(caller):
            logger.warning(
                "Access denied: caller is not the owner",
                extra={"event": "ownable.denied", "operation": operation, "caller": str(caller)[:10]},
            )
            raise AuthorizationError(details={"operation": operation, "caller": caller})

    @staticmethod
    def _normalize(address: str) -> str:
        return (address or "").strip().lower()


class Initializable:
    """Mixin providing an Uninitialized -> Initialized one-way transition."""

    def __init__(self) -> None:
        self.init_state = InitState.UNINITIALIZED

    @property
    def initialized(self) -> bool:
        return self.init_state is InitState.INITIALIZED

    def _require_not_initialized(self) -> None:
        if self.initialized:
            raise AlreadyInitializedError()

    def _mark_initialized(self) -> None:
        self._require_not_initialized()
        self.init_state = InitState.INITIALIZED
