"""
Pool record and Ledger state for cpamm
"""

from .ledger import AtomicLedger, InMemoryLedger, Ledger, LedgerError, LedgerView, UnknownAssetError
from .pool import (
    Authority,
    HasAuthority,
    NoAuthority,
    PoolConfig,
    compute_pool_id,
    pool_from_dict,
    pool_to_dict,
)

__all__ = [
    "AtomicLedger",
    "InMemoryLedger",
    "Ledger",
    "LedgerError",
    "LedgerView",
    "UnknownAssetError",
    "Authority",
    "HasAuthority",
    "NoAuthority",
    "PoolConfig",
    "compute_pool_id",
    "pool_from_dict",
    "pool_to_dict",
]
