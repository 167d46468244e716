"""
Paper exchange: simulates fills in real-time using latest market data.

No network connection. Tracks exchange-side cash and positions; prices come from
a provided source (dict of symbol -> price, or a DataFrame provider).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Callable

import pandas as pd

from stockfolio.errors import ExchangeUnavailableError, ValidationError
from stockfolio.exchange.base import ExchangeService
from stockfolio.instrument import Instrument, as_instrument
from stockfolio.trade import Side

if TYPE_CHECKING:
    from stockfolio.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderRecord:
    """One order seen by the paper exchange. amount is None when rejected."""

    side: Side
    instrument: Instrument
    quantity: int
    amount: Decimal | None
    timestamp: datetime
    order_id: str | None = None
    message: str | None = None

    @property
    def filled(self) -> bool:
        return self.amount is not None


def _default_market_data(symbols: list[str]) -> pd.DataFrame:
    """Default: no data. Override via constructor for paper simulation."""
    return pd.DataFrame(columns=["symbol", "close"])


def _prices_to_dataframe(symbols: list[str], prices: dict[str, Any]) -> pd.DataFrame:
    """Build a one-row-per-symbol DataFrame with close from prices dict."""
    rows = [{"symbol": s, "close": p} for s, p in prices.items() if s in symbols]
    return pd.DataFrame(rows) if rows else pd.DataFrame(columns=["symbol", "close"])


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, Decimal):
        price = value
    else:
        try:
            price = Decimal(str(value))
        except InvalidOperation:
            return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def _initial_cash(value: Any) -> Decimal:
    try:
        cash = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"initial_cash must be a number, got {value!r}") from None
    if not cash.is_finite() or cash < 0:
        raise ValidationError(f"initial_cash must be non-negative, got {value!r}")
    return cash


class PaperExchange(ExchangeService):
    """
    Paper exchange. Fills market orders at the latest close from the price source.
    Buys are rejected when cash does not cover the cost, sells when the
    exchange-side position is short. Halted instruments reject all orders.
    Price source: market_data_source(symbols -> DataFrame with symbol/close columns),
    or latest_prices (dict symbol -> price). latest_prices is read live, so
    mutating the dict moves the market.
    """

    def __init__(
        self,
        initial_cash: Decimal | int | str = 0,
        *,
        market_data_source: Callable[[list[str]], pd.DataFrame] | None = None,
        latest_prices: dict[str, Any] | None = None,
        positions: dict[str, int] | None = None,
    ) -> None:
        self._cash = _initial_cash(initial_cash)
        self._positions: dict[Instrument, int] = {
            as_instrument(sym): qty for sym, qty in (positions or {}).items() if qty
        }
        self._halted: set[Instrument] = set()
        self._available = True
        self._order_log: list[OrderRecord] = []
        if market_data_source is not None:
            self._market_data_source = market_data_source
        elif latest_prices is not None:
            self._market_data_source = lambda syms: _prices_to_dataframe(syms, latest_prices)
        else:
            self._market_data_source = _default_market_data

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs: Any) -> "PaperExchange":
        """Paper exchange seeded with settings.paper_initial_cash."""
        return cls(settings.paper_initial_cash, **kwargs)

    @property
    def cash(self) -> Decimal:
        return self._cash

    def position(self, instrument: Instrument | str) -> int:
        """Exchange-side units held for instrument. 0 if not present."""
        return self._positions.get(as_instrument(instrument), 0)

    def halt(self, instrument: Instrument | str) -> None:
        """Reject all orders for instrument until resume()."""
        self._halted.add(as_instrument(instrument))

    def resume(self, instrument: Instrument | str) -> None:
        self._halted.discard(as_instrument(instrument))

    def set_available(self, value: bool) -> None:
        """When False, every call raises ExchangeUnavailableError (simulated outage)."""
        self._available = value

    def get_market_data(self, symbols: list[str]) -> pd.DataFrame:
        """Return market data from the injected source."""
        self._ensure_available()
        return self._market_data_source(symbols)

    def get_price(self, instrument: Instrument) -> Decimal:
        instrument = as_instrument(instrument)
        price = self._latest_price(instrument)
        if price is None:
            raise ExchangeUnavailableError(f"No market data for {instrument.symbol}")
        return price

    def submit_buy(self, instrument: Instrument, quantity: int) -> Decimal | None:
        instrument = as_instrument(instrument)
        price, reason = self._quote_for_order(instrument)
        if price is None:
            return self._reject(Side.BUY, instrument, quantity, reason)
        cost = price * quantity
        if self._cash < cost:
            return self._reject(Side.BUY, instrument, quantity, "Insufficient cash")
        self._cash -= cost
        self._positions[instrument] = self._positions.get(instrument, 0) + quantity
        return self._fill(Side.BUY, instrument, quantity, cost)

    def submit_sell(self, instrument: Instrument, quantity: int) -> Decimal | None:
        instrument = as_instrument(instrument)
        price, reason = self._quote_for_order(instrument)
        if price is None:
            return self._reject(Side.SELL, instrument, quantity, reason)
        pos = self._positions.get(instrument, 0)
        if pos < quantity:
            return self._reject(Side.SELL, instrument, quantity, "Insufficient position")
        proceeds = price * quantity
        self._cash += proceeds
        self._positions[instrument] = pos - quantity
        if self._positions[instrument] == 0:
            del self._positions[instrument]
        return self._fill(Side.SELL, instrument, quantity, proceeds)

    def get_order_log(self) -> list[OrderRecord]:
        """Return log of all submitted orders and their result (for debugging/tests)."""
        return list(self._order_log)

    def _ensure_available(self) -> None:
        if not self._available:
            raise ExchangeUnavailableError("Paper exchange is unavailable")

    def _latest_price(self, instrument: Instrument) -> Decimal | None:
        df = self.get_market_data([instrument.symbol])
        if df.empty or "close" not in df.columns:
            return None
        if "symbol" in df.columns:
            sub = df[df["symbol"] == instrument.symbol]
            if sub.empty:
                return None
            row = sub.iloc[-1]
        else:
            row = df.iloc[-1]
        return _to_decimal(row["close"])

    def _quote_for_order(self, instrument: Instrument) -> tuple[Decimal | None, str]:
        self._ensure_available()
        if instrument in self._halted:
            return None, "Instrument halted"
        price = self._latest_price(instrument)
        if price is None:
            return None, "No market data for symbol"
        return price, ""

    def _reject(self, side: Side, instrument: Instrument, quantity: int, reason: str) -> None:
        logger.info("Paper order rejected: %s %s %s (%s)", side.value, quantity, instrument, reason)
        self._order_log.append(
            OrderRecord(side, instrument, quantity, None, datetime.now(), message=reason)
        )
        return None

    def _fill(self, side: Side, instrument: Instrument, quantity: int, amount: Decimal) -> Decimal:
        order_id = f"paper-{uuid.uuid4().hex[:12]}"
        logger.debug("Paper order filled: %s %s %s for %s (%s)", side.value, quantity, instrument, amount, order_id)
        self._order_log.append(
            OrderRecord(side, instrument, quantity, amount, datetime.now(), order_id=order_id)
        )
        return amount
