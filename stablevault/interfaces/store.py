"""State store protocol — persistence of the bank snapshot."""
from typing import Protocol

from ..models import BankState


class StateStore(Protocol):
    """Abstract interface for loading and saving bank state."""

    def load(self) -> BankState | None: ...

    def save(self, state: BankState) -> None: ...
