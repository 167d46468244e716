"""
Portfolio manager: buys and sells through an ExchangeService and keeps the
holdings ledger in step with what the exchange actually executed.

Buy:  validate → submit_buy → on fill: add_holdings.
Sell: validate → (lock) has_at_least + remove_holdings → submit_sell → on rejection or error: restore.
Exchange calls never run while the ledger lock is held.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

import pandas as pd

from stockfolio.errors import InsufficientHoldingsError
from stockfolio.exchange.base import ExchangeService
from stockfolio.holdings import Holdings, validate_quantity
from stockfolio.instrument import Instrument, as_instrument
from stockfolio.trade import Side, TradeOutcome

logger = logging.getLogger(__name__)

VALUATION_COLUMNS = ["symbol", "quantity", "price", "market_value"]


class PortfolioManager:
    """
    Manages a portfolio using the exchange.
    Expected failures (not enough holdings, order rejected) come back as a
    TradeOutcome; ExchangeUnavailableError and other exchange errors propagate.
    """

    def __init__(
        self,
        exchange: ExchangeService,
        holdings: Holdings | Mapping[Instrument | str, int] | None = None,
    ) -> None:
        if exchange is None:
            raise ValueError("exchange cannot be None")
        self.exchange = exchange
        if holdings is None:
            holdings = Holdings()
        elif not isinstance(holdings, Holdings):
            holdings = Holdings.from_mapping(holdings)
        self._holdings = holdings

    @property
    def holdings(self) -> Mapping[Instrument, int]:
        """Read-only snapshot of what the portfolio holds."""
        return self._holdings.snapshot()

    def quantity(self, instrument: Instrument | str) -> int:
        return self._holdings.quantity(instrument)

    def get_market_value(self) -> Decimal:
        """Value of the whole portfolio at current exchange prices."""
        total = Decimal("0")
        for instrument, quantity in self._holdings.snapshot().items():
            total += self.exchange.get_price(instrument) * quantity
        return total

    def valuation(self) -> pd.DataFrame:
        """One row per holding: symbol, quantity, price, market_value. Sorted by symbol."""
        rows = []
        for instrument, quantity in sorted(self._holdings.snapshot().items()):
            price = self.exchange.get_price(instrument)
            rows.append(
                {
                    "symbol": instrument.symbol,
                    "quantity": quantity,
                    "price": price,
                    "market_value": price * quantity,
                }
            )
        return pd.DataFrame(rows, columns=VALUATION_COLUMNS)

    def buy(self, instrument: Instrument | str, quantity: int) -> TradeOutcome:
        """
        Buy on the exchange, then add to the portfolio.
        Holdings change only if the exchange reports a fill.
        """
        validate_quantity(quantity)
        instrument = as_instrument(instrument)

        cost = self.exchange.submit_buy(instrument, quantity)
        if cost is None:
            logger.info("Buy rejected by exchange: %s %s", quantity, instrument)
            return TradeOutcome.rejected(instrument, Side.BUY, quantity)

        self._holdings.add_holdings(instrument, quantity)
        logger.info("Bought %s %s for %s", quantity, instrument, cost)
        return TradeOutcome.fill(instrument, Side.BUY, quantity, cost)

    def sell(self, instrument: Instrument | str, quantity: int) -> TradeOutcome:
        """
        Sell from the portfolio on the exchange. If the portfolio does not hold
        enough units nothing is sent to the exchange. Units are removed before
        the order is submitted and restored if it does not fill.
        """
        validate_quantity(quantity)
        instrument = as_instrument(instrument)

        with self._holdings.lock:
            available = self._holdings.quantity(instrument)
            if not self._holdings.has_at_least(instrument, quantity):
                logger.info("Sell refused: requested %s %s, held %s", quantity, instrument, available)
                return TradeOutcome.insufficient(instrument, quantity, available)
            try:
                self._holdings.remove_holdings(instrument, quantity)
            except InsufficientHoldingsError as e:
                logger.warning("Sell refused: %s", e)
                return TradeOutcome.insufficient(instrument, quantity, e.available)

        try:
            proceeds = self.exchange.submit_sell(instrument, quantity)
        except Exception:
            logger.exception("Sell of %s %s failed on exchange; restoring holdings", quantity, instrument)
            self._holdings.add_holdings(instrument, quantity)
            raise

        if proceeds is None:
            self._holdings.add_holdings(instrument, quantity)
            logger.warning("Sell rejected by exchange: %s %s; holdings restored", quantity, instrument)
            return TradeOutcome.rejected(instrument, Side.SELL, quantity)

        logger.info("Sold %s %s for %s", quantity, instrument, proceeds)
        return TradeOutcome.fill(instrument, Side.SELL, quantity, proceeds)
