"""Bank error kinds — every failure is terminal for the triggering operation."""
from __future__ import annotations


class BankError(Exception):
    """Base class for all bank failures.

    ``code`` is a stable identifier callers can surface to end users.
    """

    code = "BankError"


class ZeroAmount(BankError):
    """Amount must be strictly positive."""

    code = "ZeroAmount"


class Unauthorized(BankError):
    """Caller is not the administrative authority."""

    code = "Unauthorized"


class NotSupported(BankError):
    """Asset is neither registered nor routable."""

    code = "NotSupported"


class NoRoute(BankError):
    """The routing service has no path between the two assets."""

    code = "NoRoute"


class OracleError(BankError):
    """Price is missing, non-positive, or older than the freshness threshold."""

    code = "OracleError"


class SlippageExceeded(BankError):
    """Realized conversion output is below the minimum accepted amount.

    ``amount_out`` is what the router actually delivered, if anything.
    """

    code = "SlippageExceeded"

    def __init__(self, message: str = "", amount_out: int = 0) -> None:
        super().__init__(message)
        self.amount_out = amount_out


class CapacityExceeded(BankError):
    """Crediting the amount would push total holdings over the cap."""

    code = "CapacityExceeded"


class InsufficientBalance(BankError):
    """Depositor balance is lower than the requested debit."""

    code = "InsufficientBalance"


class AlreadyRegistered(BankError):
    code = "AlreadyRegistered"


class NotRegistered(BankError):
    code = "NotRegistered"


class Halted(BankError):
    """Deposits and withdrawals are suspended."""

    code = "Halted"


class ReentrantCall(BankError):
    """An entry point was invoked while another operation was crossing an external boundary."""

    code = "ReentrantCall"


class ExchangeFailed(BankError):
    """The routing service rejected the swap or could not be reached."""

    code = "ExchangeFailed"


class PayoutFailed(BankError):
    """The custody transfer collaborator failed to pay out."""

    code = "PayoutFailed"


class StateCorrupted(BankError):
    """Persisted state violates the accounting invariants."""

    code = "StateCorrupted"
