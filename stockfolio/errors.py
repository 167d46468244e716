"""
Errors raised by the portfolio core.

Expected trade failures (insufficient holdings, order rejected) are reported as
TradeOutcome values, not exceptions. Everything here is either a caller bug
(ValidationError) or a failure the caller must see (ExchangeUnavailableError).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stockfolio.instrument import Instrument


class StockfolioError(Exception):
    """Base class for all errors raised by stockfolio."""


class ValidationError(StockfolioError, ValueError):
    """Invalid argument: non-positive quantity, empty symbol, bad setting."""


class InsufficientHoldingsError(StockfolioError):
    """Ledger removal requested more units than the portfolio holds."""

    def __init__(self, instrument: "Instrument", requested: int, available: int) -> None:
        super().__init__(
            f"Cannot remove {requested} of {instrument.symbol}: only {available} held"
        )
        self.instrument = instrument
        self.requested = requested
        self.available = available


class ExchangeUnavailableError(StockfolioError):
    """The exchange could not be asked (outage, connectivity, no market data)."""
