"""
Greater Core Module

Core functionality for the Greater vesting engine including:
- Vesting accounting (schedules, index, calculator, engine)
- Contract primitives (ERC20 token, ownership)
- Configuration, structured logging and metrics
"""

__all__ = []
