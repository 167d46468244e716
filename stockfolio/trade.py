"""
Trade outcome: tagged result of a buy or sell request.

Immutable. Distinguishes a filled order (even a free one) from a refused one.
Exchange outages are not outcomes; they propagate as ExchangeUnavailableError.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from stockfolio.instrument import Instrument


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


class TradeStatus(Enum):
    """Terminal state of a trade request that passed validation."""

    FILLED = "filled"
    INSUFFICIENT_HOLDINGS = "insufficient_holdings"
    EXCHANGE_REJECTED = "exchange_rejected"


@dataclass(frozen=True)
class TradeOutcome:
    """Result of buy/sell. amount is cost (buy) or proceeds (sell); zero unless filled."""

    status: TradeStatus
    instrument: Instrument
    side: Side
    quantity: int
    amount: Decimal = Decimal("0")
    message: str | None = None

    @property
    def filled(self) -> bool:
        return self.status is TradeStatus.FILLED

    def __bool__(self) -> bool:
        return self.filled

    @classmethod
    def fill(cls, instrument: Instrument, side: Side, quantity: int, amount: Decimal) -> "TradeOutcome":
        return cls(TradeStatus.FILLED, instrument, side, quantity, amount)

    @classmethod
    def insufficient(cls, instrument: Instrument, quantity: int, available: int) -> "TradeOutcome":
        return cls(
            TradeStatus.INSUFFICIENT_HOLDINGS,
            instrument,
            Side.SELL,
            quantity,
            message=f"Insufficient holdings: requested {quantity}, held {available}",
        )

    @classmethod
    def rejected(cls, instrument: Instrument, side: Side, quantity: int) -> "TradeOutcome":
        return cls(
            TradeStatus.EXCHANGE_REJECTED,
            instrument,
            side,
            quantity,
            message="Order rejected by exchange",
        )
