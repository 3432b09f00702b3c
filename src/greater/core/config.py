"""
Greater Vesting Configuration

Deployment-time settings for the vesting engine, read once from environment
variables. The five named allocations (Liquidity, Core Contributors,
Treasury, Protocol Rewards, Team) are the built-in plan; a YAML plan can
replace them via GREATER_ALLOCATION_PLAN.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from greater.core.vesting.allocation import DEFAULT_ALLOCATIONS, Allocation

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int, minimum: int = 0) -> int:
    """Read an integer setting, rejecting junk and values below minimum."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{env_var} must be >= {minimum}, got {value}")
    return value


def _get_network(env_var: str = "GREATER_NETWORK") -> NetworkType:
    raw = os.getenv(env_var, "testnet").strip().lower()
    try:
        return NetworkType(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be 'testnet' or 'mainnet', got {raw!r}") from exc


NETWORK = _get_network()

# 2023-12-15T00:00:00+00:00
VESTING_START_TIME = _get_int("GREATER_VESTING_START_TIME", 1702659600)

# One "month" for the deployment allocations
SLICE_PERIOD_SECONDS = _get_int("GREATER_SLICE_PERIOD_SECONDS", 30 * 24 * 60 * 60, minimum=1)

TOKEN_DECIMALS = _get_int("GREATER_TOKEN_DECIMALS", 18)

ALLOCATION_PLAN_PATH = os.getenv("GREATER_ALLOCATION_PLAN", "").strip()

LOG_LEVEL = os.getenv("GREATER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
LOG_FILE = os.getenv("GREATER_LOG_FILE", "").strip()


def _parse_allocation(entry: Any, position: int) -> Allocation:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Allocation #{position} must be a mapping")
    missing = [key for key in ("name", "amount", "cliff_months", "slice_months") if key not in entry]
    if missing:
        raise ConfigurationError(f"Allocation #{position} is missing {', '.join(missing)}")
    try:
        return Allocation(
            name=str(entry["name"]),
            amount=int(entry["amount"]),
            cliff_months=int(entry["cliff_months"]),
            slice_months=int(entry["slice_months"]),
            revocable=bool(entry.get("revocable", True)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Allocation #{position} is invalid: {exc}") from exc


def load_allocation_plan(path: str | Path) -> tuple[Allocation, ...]:
    """
    Load an allocation plan from a YAML file.

    Expected shape::

        allocations:
          - name: Liquidity
            amount: 150000000
            cliff_months: 0
            slice_months: 3

    Args:
        path: Path to the YAML document

    Returns:
        Allocations in file order

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    plan_path = Path(path)
    try:
        with plan_path.open("r", encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Allocation plan not found: {plan_path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Allocation plan is not valid YAML: {exc}") from exc

    if not isinstance(document, dict) or not isinstance(document.get("allocations"), list):
        raise ConfigurationError("Allocation plan must define an 'allocations' list")

    entries = document["allocations"]
    if not entries:
        raise ConfigurationError("Allocation plan must contain at least one allocation")

    allocations = tuple(_parse_allocation(entry, i) for i, entry in enumerate(entries))
    logger.info(
        "Loaded allocation plan",
        extra={"event": "config.allocation_plan_loaded", "path": str(plan_path), "count": len(allocations)},
    )
    return allocations


def get_allocation_plan() -> tuple[Allocation, ...]:
    """Return the configured allocation plan, falling back to the built-in one."""
    if not ALLOCATION_PLAN_PATH:
        return DEFAULT_ALLOCATIONS
    try:
        return load_allocation_plan(ALLOCATION_PLAN_PATH)
    except ConfigurationError:
        if NETWORK is NetworkType.MAINNET:
            raise
        logger.warning(
            "Falling back to built-in allocation plan for %s",
            NETWORK.value,
            extra={"event": "config.allocation_plan_fallback", "path": ALLOCATION_PLAN_PATH},
        )
        return DEFAULT_ALLOCATIONS
