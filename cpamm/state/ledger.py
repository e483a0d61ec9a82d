"""
Ledger capability interface and a deterministic in-memory implementation.

The pool core never owns balances. It reads them through ``LedgerView`` and
returns effect requests; an executor applies those requests through ``Ledger``.

``InMemoryLedger`` is the reference Ledger used by the in-process
``PoolService`` and by tests.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import ContextManager, Dict, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from .pool import AssetId

Holder = str  # principal or vault handle
Amount = int  # non-negative integer


class LedgerError(ValueError):
    """Raised by a Ledger when an effect cannot be applied."""


class UnknownAssetError(LedgerError):
    """Raised when asset metadata is requested for an unregistered asset."""


@runtime_checkable
class LedgerView(Protocol):
    """Read-only Ledger surface consumed by the core."""

    def balance_of(self, holder: Holder, asset: AssetId) -> Amount: ...

    def total_supply(self, asset: AssetId) -> Amount: ...

    def decimals(self, asset: AssetId) -> int: ...


@runtime_checkable
class Ledger(LedgerView, Protocol):
    """Full Ledger capability surface (reads plus effect execution)."""

    def transfer(self, asset: AssetId, source: Holder, destination: Holder, amount: Amount) -> None: ...

    def mint(self, asset: AssetId, to: Holder, amount: Amount) -> None: ...

    def burn(self, asset: AssetId, source: Holder, amount: Amount) -> None: ...


@runtime_checkable
class AtomicLedger(Ledger, Protocol):
    """Ledger that can group several effects into one all-or-nothing block."""

    def atomic(self) -> ContextManager[object]: ...


# Journal entries: ("balance", (holder, asset), old) or ("supply", asset, old).
_JournalEntry = Tuple[str, object, Amount]


class InMemoryLedger:
    """
    Dict-backed Ledger mapping (holder, asset) -> amount.

    Notes:
    - Balances and supplies are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    - ``atomic()`` groups mutations: if the block raises, every mutation made
      inside it is rolled back before the exception propagates.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Holder, AssetId], Amount] = {}
        self._supply: Dict[AssetId, Amount] = {}
        self._decimals: Dict[AssetId, int] = {}
        self._lock = threading.RLock()
        self._journal: Optional[List[_JournalEntry]] = None

    # -- metadata -------------------------------------------------------------

    def register_asset(self, asset: AssetId, decimals: int) -> None:
        """Register an asset and its precision (decimal places)."""
        if not isinstance(decimals, int) or isinstance(decimals, bool) or decimals < 0:
            raise ValueError(f"decimals must be a non-negative int: {decimals!r}")
        with self._lock:
            self._decimals[asset] = decimals

    def decimals(self, asset: AssetId) -> int:
        try:
            return self._decimals[asset]
        except KeyError:
            raise UnknownAssetError(f"unknown asset: {asset}") from None

    # -- reads ----------------------------------------------------------------

    def balance_of(self, holder: Holder, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def total_supply(self, asset: AssetId) -> Amount:
        return self._supply.get(asset, 0)

    def get_all_balances(self) -> Dict[Tuple[Holder, AssetId], Amount]:
        return dict(self._balances)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Holder, Amount]:
        return {holder: amount for (holder, a), amount in self._balances.items() if a == asset}

    def verify_non_negative(self) -> bool:
        return all(v >= 0 for v in self._balances.values()) and all(v >= 0 for v in self._supply.values())

    # -- writes ---------------------------------------------------------------

    def _set_balance(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        key = (holder, asset)
        if self._journal is not None:
            self._journal.append(("balance", key, self._balances.get(key, 0)))
        if amount == 0:
            self._balances.pop(key, None)
        else:
            self._balances[key] = amount

    def _set_supply(self, asset: AssetId, amount: Amount) -> None:
        if self._journal is not None:
            self._journal.append(("supply", asset, self._supply.get(asset, 0)))
        if amount == 0:
            self._supply.pop(asset, None)
        else:
            self._supply[asset] = amount

    @staticmethod
    def _check_amount(amount: Amount) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if amount < 0:
            raise LedgerError(f"amount must be non-negative: {amount}")

    def transfer(self, asset: AssetId, source: Holder, destination: Holder, amount: Amount) -> None:
        """Move *amount* of *asset*; raises LedgerError if *source* is short."""
        self._check_amount(amount)
        with self._lock:
            current = self.balance_of(source, asset)
            if current < amount:
                raise LedgerError(f"Insufficient balance: {source} holds {current} {asset}, needs {amount}")
            if source == destination:
                return
            self._set_balance(source, asset, current - amount)
            self._set_balance(destination, asset, self.balance_of(destination, asset) + amount)

    def mint(self, asset: AssetId, to: Holder, amount: Amount) -> None:
        """Create *amount* of *asset* in *to*'s balance, growing total supply."""
        self._check_amount(amount)
        with self._lock:
            self._set_balance(to, asset, self.balance_of(to, asset) + amount)
            self._set_supply(asset, self.total_supply(asset) + amount)

    def burn(self, asset: AssetId, source: Holder, amount: Amount) -> None:
        """Destroy *amount* of *asset* held by *source*, shrinking total supply."""
        self._check_amount(amount)
        with self._lock:
            current = self.balance_of(source, asset)
            if current < amount:
                raise LedgerError(f"Insufficient balance to burn: {source} holds {current} {asset}, needs {amount}")
            self._set_balance(source, asset, current - amount)
            self._set_supply(asset, self.total_supply(asset) - amount)

    @contextmanager
    def atomic(self) -> Iterator["InMemoryLedger"]:
        """All-or-nothing block of mutations (re-entrant; the outermost block commits)."""
        with self._lock:
            if self._journal is not None:
                yield self
                return
            self._journal = []
            try:
                yield self
            except BaseException:
                for kind, key, old in reversed(self._journal):
                    if kind == "balance":
                        holder, asset = key  # type: ignore[misc]
                        if old == 0:
                            self._balances.pop((holder, asset), None)
                        else:
                            self._balances[(holder, asset)] = old
                    else:
                        if old == 0:
                            self._supply.pop(key, None)  # type: ignore[arg-type]
                        else:
                            self._supply[key] = old  # type: ignore[index]
                raise
            finally:
                self._journal = None

    def __repr__(self) -> str:
        return f"InMemoryLedger({len(self._balances)} balances, {len(self._supply)} assets)"
