"""Ledger — per-depositor balances and the global capacity counter.

The ledger is the only place balances change. Both mutations are
synchronous, so on a single event loop a credit or debit is never
interleaved with another operation.
"""
from __future__ import annotations

import logging

from ..errors import CapacityExceeded, InsufficientBalance, StateCorrupted, ZeroAmount

logger = logging.getLogger(__name__)


class Ledger:
    """Balances in smallest accounting units, bounded by ``max_cap``.

    Invariant after every call: ``capacity_used == sum(balances)`` and
    ``0 <= capacity_used <= max_cap``.
    """

    def __init__(
        self,
        max_cap: int,
        balances: dict[str, int] | None = None,
        capacity_used: int | None = None,
    ) -> None:
        if max_cap <= 0:
            raise ValueError("max_cap must be positive")
        self.max_cap = max_cap
        self._balances: dict[str, int] = dict(balances or {})
        self._capacity_used = (
            sum(self._balances.values()) if capacity_used is None else capacity_used
        )
        self._check_invariant()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def credit(self, depositor: str, amount: int) -> int:
        """Add ``amount`` to the depositor and the capacity counter."""
        if amount <= 0:
            raise ZeroAmount("Credit amount must be positive")
        if self._capacity_used + amount > self.max_cap:
            raise CapacityExceeded(
                f"Credit of {amount} exceeds cap: {self._capacity_used} used of {self.max_cap}"
            )

        new_balance = self._balances.get(depositor, 0) + amount
        self._balances[depositor] = new_balance
        self._capacity_used += amount
        self._check_invariant()
        logger.debug("Credited %d to %s (balance %d)", amount, depositor, new_balance)
        return new_balance

    def debit(self, depositor: str, amount: int) -> int:
        """Remove ``amount`` from the depositor and release the capacity."""
        if amount <= 0:
            raise ZeroAmount("Debit amount must be positive")
        balance = self._balances.get(depositor, 0)
        if amount > balance:
            raise InsufficientBalance(
                f"Debit of {amount} exceeds balance {balance} of {depositor}"
            )

        # Zero balances stay in the table
        self._balances[depositor] = balance - amount
        self._capacity_used -= amount
        self._check_invariant()
        logger.debug("Debited %d from %s (balance %d)", amount, depositor, balance - amount)
        return balance - amount

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def balance_of(self, depositor: str) -> int:
        return self._balances.get(depositor, 0)

    def total_capacity_used(self) -> int:
        return self._capacity_used

    def total_balance(self) -> int:
        return sum(self._balances.values())

    def cap_remaining(self) -> int:
        return self.max_cap - self._capacity_used

    def balances(self) -> dict[str, int]:
        """Copy of the balance table."""
        return dict(self._balances)

    def _check_invariant(self) -> None:
        total = sum(self._balances.values())
        if any(v < 0 for v in self._balances.values()):
            raise StateCorrupted("Negative balance in ledger")
        if total != self._capacity_used:
            raise StateCorrupted(
                f"Capacity counter {self._capacity_used} != sum of balances {total}"
            )
        if not 0 <= self._capacity_used <= self.max_cap:
            raise StateCorrupted(
                f"Capacity counter {self._capacity_used} outside [0, {self.max_cap}]"
            )
