"""Shared test fixtures, fakes for the external collaborators, sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Awaitable, Callable

import pytest

from stablevault.config import (
    AppConfig,
    AssetSpecConfig,
    BankConfig,
    CustodyConfig,
    PriceOracleConfig,
    PythConfig,
    RpcConfig,
)
from stablevault.models import BankState, PriceQuote
from stablevault.services import BankEngine, build_engine

NOW = 1_700_000_000
ADMIN = "0xADMIN"
ALICE = "0xALICE"
BOB = "0xBOB"

USDC = 10**6
ETH = 10**18
TKA = 10**8


# ---------------------------------------------------------------------------
# Fakes for external collaborators
# ---------------------------------------------------------------------------


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakePriceSource:
    """In-memory quotes keyed by oracle reference."""

    def __init__(self, quotes: dict[str, PriceQuote] | None = None) -> None:
        self.quotes = dict(quotes or {})
        self.calls: list[list[str]] = []

    def set_price(self, ref: str, price: int, expo: int = -8, as_of: int = NOW) -> None:
        self.quotes[ref] = PriceQuote(ref=ref, price=price, expo=expo, as_of=as_of)

    async def fetch_quotes(self, refs: list[str]) -> dict[str, PriceQuote]:
        self.calls.append(list(refs))
        return {r: self.quotes[r] for r in refs if r in self.quotes}


class FakeRouter:
    """Routes into the accounting unit at a per-asset rate (out units per in unit)."""

    def __init__(self) -> None:
        self.rates: dict[tuple[str, str], Callable[[int], int]] = {}
        self.swaps: list[dict[str, Any]] = []
        self.on_swap: Callable[[], Awaitable[None]] | None = None
        self.fail_swap: Exception | None = None

    def add_route(self, asset_in: str, asset_out: str, fn: Callable[[int], int]) -> None:
        self.rates[(asset_in, asset_out)] = fn

    async def has_route(self, asset_in: str, asset_out: str) -> bool:
        return (asset_in, asset_out) in self.rates

    async def get_amount_out(self, asset_in: str, asset_out: str, amount_in: int) -> int:
        return self.rates[(asset_in, asset_out)](amount_in)

    async def swap_exact_in(
        self,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
    ) -> int:
        if self.on_swap is not None:
            await self.on_swap()
        if self.fail_swap is not None:
            raise self.fail_swap
        amount_out = self.rates[(asset_in, asset_out)](amount_in)
        self.swaps.append(
            {
                "asset_in": asset_in,
                "asset_out": asset_out,
                "amount_in": amount_in,
                "min_amount_out": min_amount_out,
                "recipient": recipient,
                "deadline": deadline,
                "amount_out": amount_out,
            }
        )
        return amount_out


class FakePayout:
    def __init__(self) -> None:
        self.transfers: list[tuple[str, str, int]] = []
        self.fail: Exception | None = None
        self.on_transfer: Callable[[], Awaitable[None]] | None = None

    async def transfer(self, asset: str, recipient: str, amount: int) -> None:
        if self.on_transfer is not None:
            await self.on_transfer()
        if self.fail is not None:
            raise self.fail
        self.transfers.append((asset, recipient, amount))


class MemoryStateStore:
    """Keeps the last saved snapshot in memory; set ``fail`` to make saves raise."""

    def __init__(self, state: BankState | None = None) -> None:
        self.state = state
        self.saves = 0
        self.fail: Exception | None = None

    def load(self) -> BankState | None:
        return self.state

    def save(self, state: BankState) -> None:
        if self.fail is not None:
            raise self.fail
        self.state = state
        self.saves += 1


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def bank_config() -> BankConfig:
    return BankConfig(
        admin=ADMIN,
        max_cap=1_000_000 * USDC,
        slippage_bps=500,
        swap_deadline_seconds=300,
        accounting_unit=AssetSpecConfig(asset="USDC", decimals=6),
        native_asset=AssetSpecConfig(asset="ETH", decimals=18, oracle_ref="ETH"),
    )


@pytest.fixture()
def sample_app_config(bank_config: BankConfig) -> AppConfig:
    return AppConfig(
        bank=bank_config,
        assets=(AssetSpecConfig(asset="TKA", decimals=8, oracle_ref="TKA"),),
        price_oracle=PriceOracleConfig(
            provider="pyth",
            max_age_seconds=3600,
            pyth=PythConfig(
                hermes_url="https://hermes.example.com", feeds={"ETH": "eee", "TKA": "aaa"}
            ),
        ),
        router=RpcConfig(rpc_endpoints=("https://router.example.com",), rpc_timeout=5),
        custody=CustodyConfig(
            address="0xCUSTODY",
            rpc=RpcConfig(rpc_endpoints=("https://custody.example.com",), rpc_timeout=5),
        ),
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def price_source() -> FakePriceSource:
    source = FakePriceSource()
    source.set_price("ETH", 2000 * 10**8)  # $2000.00
    source.set_price("TKA", 2 * 10**8)  # $2.00
    return source


@pytest.fixture()
def router() -> FakeRouter:
    r = FakeRouter()
    # 2 USDC per TKA, 1.5% worse than the oracle
    r.add_route("TKA", "USDC", lambda amount: amount * 2 * USDC * 985 // (1000 * TKA))
    return r


@pytest.fixture()
def payout() -> FakePayout:
    return FakePayout()


@pytest.fixture()
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture()
def engine(
    sample_app_config: AppConfig,
    price_source: FakePriceSource,
    router: FakeRouter,
    payout: FakePayout,
    store: MemoryStateStore,
    clock: FakeClock,
) -> BankEngine:
    return build_engine(
        sample_app_config,
        source=price_source,
        router=router,
        payout=payout,
        store=store,
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    bank:
      admin: "0xADMIN"
      max_cap: 1000000000000
      slippage_bps: 300
      swap_deadline_seconds: 120
      state_path: state/bank.json
      accounting_unit:
        asset: USDC
        decimals: 6
      native_asset:
        asset: ETH
        decimals: 18
        oracle_ref: ETH
    assets:
      - asset: TKA
        decimals: 8
        oracle_ref: TKA
    price_oracle:
      provider: pyth
      max_age_seconds: 600
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {ETH: "eee", TKA: "aaa"}
    router:
      rpc_endpoints: ["https://router.example.com"]
      rpc_timeout: 10
    custody:
      address: "0xCUSTODY"
      rpc_endpoints: ["https://custody.example.com"]
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
