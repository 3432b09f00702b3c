"""
Vesting-specific exception hierarchy for Greater.

Provides typed exceptions for the vesting engine so callers can tell an
authorization failure from an unfunded pool or a premature release, and
decide whether retrying later makes sense.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vesting-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can succeed if retried later
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# ==================== Validation Errors ====================


class VestingValidationError(VestingError):
    """Raised when schedule parameters or engine inputs are malformed.

    Examples: zero slices, zero slice period, negative amount, empty beneficiary.
    """
    pass


# ==================== Authorization Errors ====================


class AuthorizationError(VestingError):
    """Raised when the caller lacks the administrator role."""

    def __init__(self, message: str = "Ownable: caller is not the owner", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class OnlyBeneficiaryAndOwnerError(AuthorizationError):
    """Raised when someone other than the beneficiary or administrator releases."""

    def __init__(
        self,
        message: str = "TokenVesting: only beneficiary and owner can release vested tokens",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


# ==================== Funds Errors ====================


class InsufficientTokenError(VestingError):
    """Raised when a commitment exceeds the free balance held by the engine.

    Recoverable: fund the engine and retry.
    """

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.required = required
        self.available = available


InsufficientPoolError = InsufficientTokenError


class NotEnoughFundsError(VestingError):
    """Raised when a release or withdraw asks for more than is available.

    Also covers zero amounts and unknown schedules.
    """

    def __init__(
        self,
        message: str,
        requested: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.requested = requested
        self.available = available


class ScheduleNotFoundError(NotEnoughFundsError):
    """Raised when a schedule id or index does not resolve to a schedule."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)


# ==================== Lifecycle Errors ====================


class AlreadyInitializedError(VestingError):
    """Raised when the one-shot initialization is invoked a second time."""

    def __init__(
        self, message: str = "Initializable: contract is already initialized", **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)


class InvalidRevokeError(VestingError):
    """Raised when revoking a non-revocable or already revoked schedule."""
    pass


class ForeignAssetGuardError(VestingError):
    """Raised when the foreign-asset sweep targets the managed asset."""
    pass


# ==================== Asset Errors ====================


class TokenError(VestingError):
    """Raised by the asset when a balance operation cannot be applied."""
    pass


class TransferFailedError(TokenError):
    """Raised when the asset reports an unsuccessful transfer."""
    pass
