"""
Greater Contract Primitives.

- ERC20: Fungible token used as the vesting pool asset
- Ownable / Initializable: single administrator and one-shot setup guard

The deployment vesting contract lives in ``greater.core.contracts.token_vesting``.
"""

from .erc20 import ERC20Token, TokenEvent
from .ownable import InitState, Initializable, Ownable

__all__ = [
    "ERC20Token",
    "TokenEvent",
    "Ownable",
    "Initializable",
    "InitState",
]
