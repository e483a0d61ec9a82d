"""
Pool core: arithmetic, guards, pricing and the operation engine.
"""

from .engine import read_reserves, step, step_or_raise
from .errors import AmmError, AmmInvariantError, ErrorKind
from .factory import create_pool
from .liquidity import quote_deposit, quote_withdraw
from .swap import calculate_amount_out, quote_swap, token_ratio
from .types import (
    Action,
    Burn,
    DepositParams,
    DepositQuote,
    Direction,
    InitializeParams,
    Mint,
    Reserves,
    SetAuthorityParams,
    SetFeeParams,
    SetLockedParams,
    Signer,
    StepResult,
    SwapParams,
    SwapQuote,
    Transfer,
    WithdrawParams,
    WithdrawQuote,
)

__all__ = [
    "step",
    "step_or_raise",
    "read_reserves",
    "create_pool",
    "quote_deposit",
    "quote_withdraw",
    "quote_swap",
    "calculate_amount_out",
    "token_ratio",
    "AmmError",
    "AmmInvariantError",
    "ErrorKind",
    "Action",
    "Direction",
    "Signer",
    "Transfer",
    "Mint",
    "Burn",
    "InitializeParams",
    "DepositParams",
    "WithdrawParams",
    "SwapParams",
    "SetLockedParams",
    "SetFeeParams",
    "SetAuthorityParams",
    "Reserves",
    "DepositQuote",
    "WithdrawQuote",
    "SwapQuote",
    "StepResult",
]
