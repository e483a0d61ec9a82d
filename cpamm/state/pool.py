"""
Pool Record: the persistent configuration of one pool.

Reserves and the liquidity-claim supply are NOT stored here. They live in the
Ledger (vault balances and claim-asset supply) and are read on every operation.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .canonical import canonical_json_bytes

# Type aliases
Principal = str  # account / signer identifier
AssetId = str  # asset (mint) identifier
Handle = str  # opaque Ledger address for a vault or the claim asset

POOL_ID_DOMAIN = b"cpamm-pool"

HANDLE_VAULT_X = "vault_x"
HANDLE_VAULT_Y = "vault_y"
HANDLE_LP_MINT = "lp_mint"


@dataclass(frozen=True)
class NoAuthority:
    """No principal may change pool settings."""


@dataclass(frozen=True)
class HasAuthority:
    """Settings may be changed by ``principal`` only."""

    principal: Principal


Authority = Union[NoAuthority, HasAuthority]


def authority_from_optional(principal: Optional[Principal]) -> Authority:
    return NoAuthority() if principal is None else HasAuthority(principal)


def authority_to_optional(authority: Authority) -> Optional[Principal]:
    if isinstance(authority, HasAuthority):
        return authority.principal
    if isinstance(authority, NoAuthority):
        return None
    raise TypeError(f"unknown authority variant: {type(authority).__name__}")


def _seed_bytes(seed: int) -> bytes:
    return int(seed).to_bytes(8, "little")


def compute_pool_id(seed: int, asset_x: AssetId, asset_y: AssetId) -> str:
    """
    Deterministically compute the pool identifier.

        pool_id = H("cpamm-pool" || seed_le8 || asset_x || 0x00 || asset_y)
    """
    data = (
        POOL_ID_DOMAIN
        + _seed_bytes(seed)
        + asset_x.encode("utf-8")
        + b"\x00"
        + asset_y.encode("utf-8")
    )
    return "0x" + hashlib.sha256(data).hexdigest()


def derive_handle(label: str, pool_id: str) -> Handle:
    """Derive an opaque vault / claim-asset handle for a pool."""
    data = label.encode("utf-8") + b"\x00" + pool_id.encode("utf-8")
    return f"{label}:0x{hashlib.sha256(data).hexdigest()}"


@dataclass(frozen=True)
class PoolConfig:
    """
    Pool Record.

    Attributes:
        seed: u64 uniqueness discriminator chosen at creation
        authority: settings authority (NoAuthority | HasAuthority)
        asset_x: first asset identifier
        asset_y: second asset identifier (must differ from asset_x)
        fee_bps: trading fee in basis points
        locked: when True, deposit / withdraw / swap are rejected
        vault_x: Ledger handle of the vault custodying asset_x
        vault_y: Ledger handle of the vault custodying asset_y
        lp_mint: Ledger handle of the liquidity-claim asset
    """

    seed: int
    authority: Authority
    asset_x: AssetId
    asset_y: AssetId
    fee_bps: int
    locked: bool
    vault_x: Handle
    vault_y: Handle
    lp_mint: Handle

    def __post_init__(self) -> None:
        if not isinstance(self.authority, (NoAuthority, HasAuthority)):
            raise TypeError(f"authority must be NoAuthority or HasAuthority, got {type(self.authority).__name__}")
        if not isinstance(self.locked, bool):
            raise TypeError("locked must be a bool")
        for name in ("seed", "fee_bps"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")

    @property
    def pool_id(self) -> str:
        return compute_pool_id(self.seed, self.asset_x, self.asset_y)

    def is_locked(self) -> bool:
        return self.locked

    def vault_for(self, asset: AssetId) -> Handle:
        """Return the vault handle custodying *asset*."""
        if asset == self.asset_x:
            return self.vault_x
        if asset == self.asset_y:
            return self.vault_y
        raise ValueError(f"Asset {asset} not in pool {self.pool_id}")

    def __repr__(self) -> str:
        return (
            f"PoolConfig(seed={self.seed}, "
            f"assets=({self.asset_x[:10]}, {self.asset_y[:10]}), "
            f"fee_bps={self.fee_bps}, locked={self.locked})"
        )


def new_pool_config(
    *,
    seed: int,
    asset_x: AssetId,
    asset_y: AssetId,
    fee_bps: int,
    authority: Authority,
) -> PoolConfig:
    """Build an unlocked PoolConfig with derived handles."""
    pool_id = compute_pool_id(seed, asset_x, asset_y)
    return PoolConfig(
        seed=seed,
        authority=authority,
        asset_x=asset_x,
        asset_y=asset_y,
        fee_bps=fee_bps,
        locked=False,
        vault_x=derive_handle(HANDLE_VAULT_X, pool_id),
        vault_y=derive_handle(HANDLE_VAULT_Y, pool_id),
        lp_mint=derive_handle(HANDLE_LP_MINT, pool_id),
    )


# Persisted layout, in field order.
POOL_FIELDS: tuple[str, ...] = tuple(PoolConfig.__dataclass_fields__)


def pool_to_dict(pool: PoolConfig) -> dict[str, Any]:
    """Serialize a PoolConfig to a plain dict (authority as principal or None)."""
    out: dict[str, Any] = {name: getattr(pool, name) for name in POOL_FIELDS}
    out["authority"] = authority_to_optional(pool.authority)
    return out


def pool_from_dict(d: Mapping[str, Any]) -> PoolConfig:
    """Deserialize a dict to a PoolConfig. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {name: d[name] for name in POOL_FIELDS}
    auth = kwargs["authority"]
    if auth is not None and not isinstance(auth, str):
        raise TypeError(f"authority must be str|None, got {type(auth).__name__}")
    kwargs["authority"] = authority_from_optional(auth)
    return PoolConfig(**kwargs)


def pool_canonical_bytes(pool: PoolConfig) -> bytes:
    """Canonical JSON bytes of the persisted layout (for hashing / snapshots)."""
    return canonical_json_bytes(pool_to_dict(pool))
