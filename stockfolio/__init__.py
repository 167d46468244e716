"""
stockfolio: stock portfolio core.

Holdings ledger plus a manager that buys, sells and values the portfolio through
an exchange service. No persistence, UI, or real exchange connectivity.
"""

__version__ = "0.1.0"

from stockfolio.errors import (
    ExchangeUnavailableError,
    InsufficientHoldingsError,
    StockfolioError,
    ValidationError,
)
from stockfolio.instrument import Instrument
from stockfolio.holdings import Holdings
from stockfolio.trade import Side, TradeOutcome, TradeStatus
from stockfolio.exchange import ExchangeService, PaperExchange
from stockfolio.manager import PortfolioManager
from stockfolio.config import Settings, configure_logging

__all__ = [
    "ExchangeService",
    "ExchangeUnavailableError",
    "Holdings",
    "InsufficientHoldingsError",
    "Instrument",
    "PaperExchange",
    "PortfolioManager",
    "Settings",
    "Side",
    "StockfolioError",
    "TradeOutcome",
    "TradeStatus",
    "ValidationError",
    "configure_logging",
]
