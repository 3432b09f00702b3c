"""
Greater - Token Vesting Engine

Time-based release of a fixed token pool to named beneficiaries under
per-beneficiary schedules with cliffs, slice-based unlocking and revocation.

Main Components:
- Vesting: schedule store, beneficiary index, calculator and engine
- Contracts: ERC20 token, ownership and the deployment vesting contract
- Configuration, logging and metrics
"""

__version__ = "0.1.0"
__author__ = "Greater Development Team"

__all__ = []
