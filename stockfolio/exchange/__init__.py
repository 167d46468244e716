"""
Exchange layer: ExchangeService interface and a paper (simulated) exchange.
"""

from stockfolio.exchange.base import ExchangeService
from stockfolio.exchange.paper import OrderRecord, PaperExchange

__all__ = [
    "ExchangeService",
    "OrderRecord",
    "PaperExchange",
]
