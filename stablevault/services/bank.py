"""Bank engine — orchestrates deposits, withdrawals and administration.

Phase order at the external boundaries:

* withdraw: debit and persist first, then quote and pay out. Any failure
  after the debit, cancellation included, re-credits the same amount before
  the error propagates.
* deposit: the router output is only known after the swap returns, so the
  credit (and the capacity check that goes with it) uses the confirmed
  amount. Accounting units received but not credited are paid back to the
  depositor.

Entry points, admin calls included, are serialized by a lock. A call
arriving while this context is already inside an operation (an adapter
calling back into the bank) is rejected with ``ReentrantCall``.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from ..conversion import apply_slippage, from_accounting_units, to_accounting_units
from ..errors import (
    BankError,
    CapacityExceeded,
    Halted,
    NotSupported,
    ReentrantCall,
    SlippageExceeded,
    Unauthorized,
    ZeroAmount,
)
from ..exchange import ExchangeAdapter
from ..interfaces.payout import PayoutGateway
from ..interfaces.store import StateStore
from ..models import (
    AssetConfig,
    BankInfo,
    BankState,
    DepositReceipt,
    PriceQuote,
    WithdrawalReceipt,
)
from ..oracles import PriceOracleAdapter
from .ledger import Ledger
from .registry import AssetRegistry

logger = logging.getLogger(__name__)

_in_operation: ContextVar[bool] = ContextVar("stablevault_in_operation", default=False)


class BankEngine:
    """Custodial bank over a single accounting unit."""

    def __init__(
        self,
        ledger: Ledger,
        registry: AssetRegistry,
        oracle: PriceOracleAdapter,
        exchange: ExchangeAdapter,
        payout: PayoutGateway,
        admin: str,
        slippage_bps: int = 500,
        store: StateStore | None = None,
        halted: bool = False,
    ) -> None:
        if not admin:
            raise ValueError("An administrative authority is required")
        self._ledger = ledger
        self._registry = registry
        self._oracle = oracle
        self._exchange = exchange
        self._payout = payout
        self._store = store
        self.admin = admin
        self.slippage_bps = slippage_bps
        self._halted = halted
        self._lock = asyncio.Lock()

    @property
    def halted(self) -> bool:
        return self._halted

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    @staticmethod
    def _require_not_reentrant(name: str) -> None:
        if _in_operation.get():
            raise ReentrantCall(f"{name} called during another bank operation")

    def _require_admin(self, caller: str) -> None:
        if caller != self.admin:
            raise Unauthorized(f"{caller} is not the bank administrator")

    def _require_active(self) -> None:
        if self._halted:
            raise Halted("Bank is halted")

    @asynccontextmanager
    async def _operation(self, name: str, caller: str) -> AsyncIterator[None]:
        self._require_not_reentrant(name)
        async with self._lock:
            token = _in_operation.set(True)
            try:
                yield
            except BankError as e:
                logger.warning("%s by %s rejected: %s (%s)", name, caller, e.code, e)
                raise
            finally:
                _in_operation.reset(token)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> BankState:
        return BankState(
            balances=self._ledger.balances(),
            capacity_used=self._ledger.total_capacity_used(),
            assets=self._registry.assets(),
            halted=self._halted,
        )

    def _commit(self) -> None:
        if self._store is not None:
            self._store.save(self.snapshot())

    def _credit_committed(self, depositor: str, amount: int) -> None:
        self._ledger.credit(depositor, amount)
        try:
            self._commit()
        except Exception:
            self._ledger.debit(depositor, amount)
            raise

    def _debit_committed(self, depositor: str, amount: int) -> None:
        self._ledger.debit(depositor, amount)
        try:
            self._commit()
        except Exception:
            self._ledger.credit(depositor, amount)
            raise

    def _revert_debit(self, depositor: str, amount: int) -> None:
        """Re-credit a withdrawal that paid nothing out.

        The in-memory credit stands even if saving it fails; the caller
        re-raises the error that caused the revert.
        """
        self._ledger.credit(depositor, amount)
        try:
            self._commit()
        except Exception:
            logger.exception(
                "Reverted withdrawal of %d for %s could not be saved", amount, depositor
            )
        logger.warning("Withdrawal of %d by %s reverted", amount, depositor)

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    async def deposit_native(self, caller: str, amount: int) -> DepositReceipt:
        """Credit the oracle value of ``amount`` smallest native units."""
        async with self._operation("deposit_native", caller):
            self._require_active()
            if amount <= 0:
                raise ZeroAmount("Deposit amount must be positive")

            native = self._registry.native_asset
            quote = await self._oracle.get_price(native.oracle_ref)
            credited = to_accounting_units(
                amount, native.decimals, quote, self._registry.accounting_unit.decimals
            )
            if credited <= 0:
                raise ZeroAmount("Deposit is worth less than one accounting unit")

            self._credit_committed(caller, credited)
            logger.info(
                "Native deposit: %s %d %s -> %d credited",
                caller, amount, native.asset, credited,
            )
            return DepositReceipt(
                depositor=caller, asset=native.asset, amount_in=amount, credited=credited
            )

    async def deposit_asset(self, caller: str, asset: str, amount: int) -> DepositReceipt:
        """Deposit ``amount`` of ``asset``, converting it into the accounting unit."""
        async with self._operation("deposit_asset", caller):
            self._require_active()
            if not self._registry.is_supported(asset) and not await self._registry.has_route(asset):
                raise NotSupported(f"Asset '{asset}' is not supported")
            if amount <= 0:
                raise ZeroAmount("Deposit amount must be positive")

            unit = self._registry.accounting_unit
            if asset == unit.asset:
                self._credit_committed(caller, amount)
                logger.info("Deposit: %s %d %s credited directly", caller, amount, asset)
                return DepositReceipt(
                    depositor=caller, asset=asset, amount_in=amount, credited=amount
                )

            expected = await self._expected_output(asset, amount)
            min_out = apply_slippage(expected, self.slippage_bps)
            if min_out <= 0:
                raise ZeroAmount(f"Deposit of {amount} {asset} is worth nothing")
            if min_out > self._ledger.cap_remaining():
                raise CapacityExceeded(
                    f"Minimum output {min_out} exceeds remaining cap {self._ledger.cap_remaining()}"
                )

            try:
                received = await self._exchange.convert(asset, amount, min_out)
            except SlippageExceeded as e:
                if e.amount_out > 0:
                    await self._return_units(caller, e.amount_out)
                raise

            try:
                self._credit_committed(caller, received)
            except Exception:
                await self._return_units(caller, received)
                raise

            logger.info(
                "Deposit: %s %d %s -> %d credited (expected %d, min %d)",
                caller, amount, asset, received, expected, min_out,
            )
            return DepositReceipt(
                depositor=caller,
                asset=asset,
                amount_in=amount,
                credited=received,
                min_amount_out=min_out,
            )

    async def _expected_output(self, asset: str, amount: int) -> int:
        """Oracle value of the deposit, or the router quote for unregistered assets."""
        config = self._registry.get(asset)
        if config.supported and config.oracle_ref:
            quote = await self._oracle.get_price(config.oracle_ref)
            return to_accounting_units(
                amount, config.precision, quote, self._registry.accounting_unit.decimals
            )
        return await self._exchange.quote(asset, amount)

    async def _return_units(self, depositor: str, amount: int) -> None:
        unit = self._registry.accounting_unit.asset
        logger.warning("Returning %d uncredited %s to %s", amount, unit, depositor)
        await self._payout.transfer(unit, depositor, amount)

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    async def withdraw(self, caller: str, amount: int) -> WithdrawalReceipt:
        """Debit ``amount`` accounting units and pay out their native value."""
        async with self._operation("withdraw", caller):
            self._require_active()
            if amount <= 0:
                raise ZeroAmount("Withdrawal amount must be positive")

            self._debit_committed(caller, amount)
            native = self._registry.native_asset
            try:
                quote = await self._oracle.get_price(native.oracle_ref)
                payout = from_accounting_units(
                    amount, native.decimals, quote, self._registry.accounting_unit.decimals
                )
                if payout <= 0:
                    raise ZeroAmount("Withdrawal is worth less than one native unit")
                await self._payout.transfer(native.asset, caller, payout)
            except BaseException:
                # Cancellation included: nothing was paid out
                self._revert_debit(caller, amount)
                raise

            logger.info(
                "Withdrawal: %s %d debited -> %d %s paid out",
                caller, amount, payout, native.asset,
            )
            return WithdrawalReceipt(
                depositor=caller,
                debited=amount,
                payout_asset=native.asset,
                payout_amount=payout,
                price=quote,
            )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    # Admin calls take the operation lock, so they never land between the
    # phases of an in-flight deposit or withdrawal.

    async def add_asset(
        self, caller: str, asset: str, precision: int, oracle_ref: str
    ) -> AssetConfig:
        async with self._operation("add_asset", caller):
            self._require_admin(caller)
            entry = self._registry.register(asset, precision, oracle_ref)
            try:
                self._commit()
            except Exception:
                self._registry.unregister(asset)
                raise
            return entry

    async def remove_asset(self, caller: str, asset: str) -> None:
        """Remove an asset; balances are already in the accounting unit."""
        async with self._operation("remove_asset", caller):
            self._require_admin(caller)
            entry = self._registry.get(asset)
            self._registry.unregister(asset)
            try:
                self._commit()
            except Exception:
                self._registry.register(entry.asset, entry.precision, entry.oracle_ref)
                raise
            logger.info(
                "Asset %s removed with %d accounting units outstanding",
                asset, self._ledger.total_capacity_used(),
            )

    async def _set_halted(self, name: str, caller: str, halted: bool) -> None:
        async with self._operation(name, caller):
            self._require_admin(caller)
            previous = self._halted
            self._halted = halted
            try:
                self._commit()
            except Exception:
                self._halted = previous
                raise

    async def halt(self, caller: str) -> None:
        await self._set_halted("halt", caller, True)
        logger.warning("Bank halted by %s", caller)

    async def resume(self, caller: str) -> None:
        await self._set_halted("resume", caller, False)
        logger.info("Bank resumed by %s", caller)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def balance_of(self, depositor: str) -> int:
        return self._ledger.balance_of(depositor)

    def get_bank_info(self) -> BankInfo:
        return BankInfo(
            total_balance=self._ledger.total_balance(),
            total_capacity_used=self._ledger.total_capacity_used(),
            cap_remaining=self._ledger.cap_remaining(),
            halted=self._halted,
        )

    def get_asset_config(self, asset: str) -> AssetConfig:
        return self._registry.get(asset)

    async def has_route(self, asset: str) -> bool:
        return await self._registry.has_route(asset)

    async def preview_conversion(
        self, asset_in: str, asset_out: str, amount_in: int | None = None
    ) -> int:
        """Estimated output of converting ``amount_in`` (default: one whole unit).

        Uses oracle prices when both sides are priced, the router quote
        otherwise. Nothing is mutated.
        """
        config_in = self._registry.get(asset_in)
        if amount_in is None:
            amount_in = 10**config_in.precision if config_in.supported else 1
        if amount_in <= 0:
            raise ZeroAmount("Preview amount must be positive")
        if asset_in == asset_out:
            return amount_in

        unit = self._registry.accounting_unit
        config_out = self._registry.get(asset_out)
        priced_in = asset_in == unit.asset or bool(config_in.oracle_ref)
        priced_out = asset_out == unit.asset or bool(config_out.oracle_ref)
        if not (priced_in and priced_out):
            return await self._exchange.quote(asset_in, amount_in, asset_out)

        value = amount_in
        if asset_in != unit.asset:
            quote_in = await self._oracle.get_price(config_in.oracle_ref)
            value = to_accounting_units(amount_in, config_in.precision, quote_in, unit.decimals)
        if asset_out == unit.asset:
            return value
        quote_out: PriceQuote = await self._oracle.get_price(config_out.oracle_ref)
        return from_accounting_units(value, config_out.precision, quote_out, unit.decimals)
