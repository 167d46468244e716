"""
Exchange abstraction.

ExchangeService ABC: get_price, submit_buy, submit_sell. The portfolio core
talks to the market only through this interface; the paper exchange in this
package implements it for simulation, real connectivity lives outside the core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from stockfolio.instrument import Instrument


class ExchangeService(ABC):
    """
    Price-quoting and order-execution service.

    Order methods return the filled amount, or None when the exchange declines
    the order (insufficient funds, instrument halted, ...). Implementations raise
    ExchangeUnavailableError when the exchange cannot be reached at all.
    """

    @abstractmethod
    def get_price(self, instrument: Instrument) -> Decimal:
        """Current price of one unit of instrument."""
        ...

    @abstractmethod
    def submit_buy(self, instrument: Instrument, quantity: int) -> Decimal | None:
        """Buy quantity units. Returns the total cost on fill, None if rejected."""
        ...

    @abstractmethod
    def submit_sell(self, instrument: Instrument, quantity: int) -> Decimal | None:
        """Sell quantity units. Returns the total proceeds on fill, None if rejected."""
        ...
