"""Protocol interfaces for the custodial bank."""
from .exchange import ExchangeRouter
from .payout import PayoutGateway
from .price_oracle import PriceSource
from .store import StateStore

__all__ = ["ExchangeRouter", "PayoutGateway", "PriceSource", "StateStore"]
