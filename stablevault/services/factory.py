"""Wire a BankEngine from configuration, restoring persisted state."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable

from ..config import AppConfig, PriceOracleConfig
from ..custody import CustodyPayout
from ..errors import StateCorrupted
from ..exchange import ExchangeAdapter, RouterClient
from ..interfaces.exchange import ExchangeRouter
from ..interfaces.payout import PayoutGateway
from ..interfaces.price_oracle import PriceSource
from ..interfaces.store import StateStore
from ..models import AssetConfig
from ..oracles import PriceOracleAdapter, PythOracle
from ..rpc import JsonRpcClient
from ..storage import JsonStateStore
from .bank import BankEngine
from .ledger import Ledger
from .registry import AssetRegistry

logger = logging.getLogger(__name__)

# Registry of price source factories keyed by provider name.
_ORACLE_PROVIDERS: dict[str, Callable[[PriceOracleConfig], Any]] = {
    "pyth": lambda cfg: PythOracle(cfg.pyth),
}


def build_engine(
    config: AppConfig,
    *,
    source: PriceSource | None = None,
    router: ExchangeRouter | None = None,
    payout: PayoutGateway | None = None,
    store: StateStore | None = None,
    clock: Callable[[], float] = time.time,
) -> BankEngine:
    """Build the engine; collaborators default to the configured network clients."""
    bank = config.bank

    if source is None:
        factory = _ORACLE_PROVIDERS.get(config.price_oracle.provider)
        if factory is None:
            raise ValueError(f"Unknown price oracle provider '{config.price_oracle.provider}'")
        source = factory(config.price_oracle)
    if router is None:
        router = RouterClient(JsonRpcClient(config.router))
    if payout is None:
        payout = CustodyPayout(JsonRpcClient(config.custody.rpc), config.custody.address)
    if store is None:
        store = JsonStateStore(bank.state_path)

    oracle = PriceOracleAdapter(source, config.price_oracle.max_age_seconds, clock=clock)
    exchange = ExchangeAdapter(
        router,
        bank.accounting_unit.asset,
        config.custody.address,
        deadline_seconds=bank.swap_deadline_seconds,
        clock=clock,
    )

    state = store.load()
    if state is None:
        logger.info("No persisted state, seeding %d assets from config", len(config.assets))
        assets = tuple(
            AssetConfig(
                asset=a.asset, supported=True, precision=a.decimals, oracle_ref=a.oracle_ref
            )
            for a in config.assets
        )
        ledger = Ledger(bank.max_cap)
        halted = False
    else:
        if state.capacity_used > bank.max_cap:
            raise StateCorrupted(
                f"Persisted capacity {state.capacity_used} exceeds configured cap {bank.max_cap}"
            )
        ledger = Ledger(bank.max_cap, state.balances, state.capacity_used)
        assets = state.assets
        halted = state.halted
        logger.info(
            "Restored %d balances (%d used of %d), halted=%s",
            len(state.balances), state.capacity_used, bank.max_cap, halted,
        )

    registry = AssetRegistry(exchange, bank.accounting_unit, bank.native_asset, assets)
    engine = BankEngine(
        ledger,
        registry,
        oracle,
        exchange,
        payout,
        admin=bank.admin,
        slippage_bps=bank.slippage_bps,
        store=store,
        halted=halted,
    )
    return engine
