"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AssetConfig:
    """Registry view of a single asset."""

    asset: str
    supported: bool
    precision: int = 0
    oracle_ref: str = ""


@dataclass(frozen=True)
class PriceQuote:
    """Oracle price, ``price * 10**expo`` units of the accounting currency."""

    ref: str
    price: int
    expo: int
    as_of: int


@dataclass(frozen=True)
class BankInfo:
    total_balance: int
    total_capacity_used: int
    cap_remaining: int
    halted: bool


@dataclass(frozen=True)
class DepositReceipt:
    depositor: str
    asset: str
    amount_in: int
    credited: int
    min_amount_out: int = 0


@dataclass(frozen=True)
class WithdrawalReceipt:
    depositor: str
    debited: int
    payout_asset: str
    payout_amount: int
    price: PriceQuote | None = None


@dataclass(frozen=True)
class BankState:
    """Persisted snapshot of everything that must survive a restart."""

    balances: dict[str, int] = field(default_factory=dict)
    capacity_used: int = 0
    assets: tuple[AssetConfig, ...] = ()
    halted: bool = False
