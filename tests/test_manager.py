"""
Tests for PortfolioManager: buy, sell, market value, rollback.
"""

import threading
from decimal import Decimal
from unittest.mock import create_autospec

import pytest

from stockfolio import (
    ExchangeService,
    ExchangeUnavailableError,
    Holdings,
    Instrument,
    PaperExchange,
    PortfolioManager,
    Side,
    TradeStatus,
    ValidationError,
)
from stockfolio.manager import VALUATION_COLUMNS

AAPL = Instrument("AAPL")
MSFT = Instrument("MSFT")


def _mock_exchange():
    return create_autospec(ExchangeService, instance=True)


# --- Construction ---


def test_manager_requires_exchange():
    with pytest.raises(ValueError):
        PortfolioManager(None)


def test_manager_accepts_mapping_seed():
    manager = PortfolioManager(_mock_exchange(), {"AAPL": 5})
    assert dict(manager.holdings) == {AAPL: 5}


def test_manager_uses_given_holdings():
    holdings = Holdings.from_mapping({AAPL: 2})
    manager = PortfolioManager(_mock_exchange(), holdings)
    assert manager.quantity(AAPL) == 2


# --- Market value ---


def test_market_value_empty_portfolio_is_zero():
    exchange = _mock_exchange()
    manager = PortfolioManager(exchange)
    assert manager.get_market_value() == Decimal("0")
    exchange.get_price.assert_not_called()


def test_market_value_sums_price_times_quantity():
    exchange = _mock_exchange()
    prices = {AAPL: Decimal("150.25"), MSFT: Decimal("300")}
    exchange.get_price.side_effect = lambda instrument: prices[instrument]
    manager = PortfolioManager(exchange, {AAPL: 10, MSFT: 2})
    assert manager.get_market_value() == Decimal("2102.50")


def test_market_value_propagates_exchange_failure():
    exchange = _mock_exchange()
    exchange.get_price.side_effect = ExchangeUnavailableError("down")
    manager = PortfolioManager(exchange, {AAPL: 1})
    with pytest.raises(ExchangeUnavailableError):
        manager.get_market_value()
    assert manager.quantity(AAPL) == 1


def test_valuation_frame_matches_market_value():
    exchange = _mock_exchange()
    prices = {AAPL: Decimal("150"), MSFT: Decimal("300")}
    exchange.get_price.side_effect = lambda instrument: prices[instrument]
    manager = PortfolioManager(exchange, {MSFT: 2, AAPL: 10})
    frame = manager.valuation()
    assert list(frame.columns) == VALUATION_COLUMNS
    assert list(frame["symbol"]) == ["AAPL", "MSFT"]
    assert list(frame["market_value"]) == [Decimal("1500"), Decimal("600")]
    assert sum(frame["market_value"], Decimal("0")) == manager.get_market_value()


def test_valuation_empty_portfolio():
    frame = PortfolioManager(_mock_exchange()).valuation()
    assert frame.empty
    assert list(frame.columns) == VALUATION_COLUMNS


# --- Buy ---


def test_buy_fill_adds_holdings_and_returns_cost():
    exchange = _mock_exchange()
    exchange.submit_buy.return_value = Decimal("1500")
    manager = PortfolioManager(exchange)
    outcome = manager.buy(AAPL, 10)
    assert outcome.status == TradeStatus.FILLED
    assert outcome.filled
    assert outcome.amount == Decimal("1500")
    assert outcome.side == Side.BUY
    assert manager.quantity(AAPL) == 10
    exchange.submit_buy.assert_called_once_with(AAPL, 10)


def test_buy_increases_holdings_by_exactly_quantity():
    exchange = _mock_exchange()
    exchange.submit_buy.return_value = Decimal("10")
    manager = PortfolioManager(exchange, {AAPL: 3})
    manager.buy("AAPL", 4)
    assert manager.quantity(AAPL) == 7


def test_buy_free_fill_is_not_a_failure():
    exchange = _mock_exchange()
    exchange.submit_buy.return_value = Decimal("0")
    manager = PortfolioManager(exchange)
    outcome = manager.buy(AAPL, 1)
    assert outcome.filled
    assert outcome.amount == Decimal("0")
    assert manager.quantity(AAPL) == 1


def test_buy_rejected_leaves_holdings_untouched():
    exchange = _mock_exchange()
    exchange.submit_buy.return_value = None
    manager = PortfolioManager(exchange, {AAPL: 1})
    outcome = manager.buy(AAPL, 10)
    assert outcome.status == TradeStatus.EXCHANGE_REJECTED
    assert not outcome
    assert outcome.amount == Decimal("0")
    assert manager.quantity(AAPL) == 1


def test_buy_exchange_unavailable_propagates():
    exchange = _mock_exchange()
    exchange.submit_buy.side_effect = ExchangeUnavailableError("down")
    manager = PortfolioManager(exchange)
    with pytest.raises(ExchangeUnavailableError):
        manager.buy(AAPL, 1)
    assert dict(manager.holdings) == {}


@pytest.mark.parametrize("quantity", [0, -5])
def test_buy_invalid_quantity_makes_no_exchange_call(quantity):
    exchange = _mock_exchange()
    manager = PortfolioManager(exchange)
    with pytest.raises(ValidationError):
        manager.buy(AAPL, quantity)
    exchange.submit_buy.assert_not_called()


# --- Sell ---


def test_sell_fill_removes_holdings_and_returns_proceeds():
    exchange = _mock_exchange()
    exchange.submit_sell.return_value = Decimal("800")
    manager = PortfolioManager(exchange, {AAPL: 10})
    outcome = manager.sell(AAPL, 5)
    assert outcome.status == TradeStatus.FILLED
    assert outcome.amount == Decimal("800")
    assert outcome.side == Side.SELL
    assert manager.quantity(AAPL) == 5
    exchange.submit_sell.assert_called_once_with(AAPL, 5)


def test_sell_insufficient_holdings_makes_no_exchange_call():
    exchange = _mock_exchange()
    manager = PortfolioManager(exchange, {AAPL: 3})
    outcome = manager.sell(AAPL, 4)
    assert outcome.status == TradeStatus.INSUFFICIENT_HOLDINGS
    assert outcome.amount == Decimal("0")
    assert manager.quantity(AAPL) == 3
    exchange.submit_sell.assert_not_called()


def test_sell_on_empty_portfolio_is_repeatable_no_op():
    exchange = _mock_exchange()
    manager = PortfolioManager(exchange)
    for _ in range(3):
        outcome = manager.sell(MSFT, 1)
        assert outcome.status == TradeStatus.INSUFFICIENT_HOLDINGS
    assert dict(manager.holdings) == {}
    exchange.submit_sell.assert_not_called()


def test_sell_rejected_restores_holdings():
    exchange = _mock_exchange()
    exchange.submit_sell.return_value = None
    manager = PortfolioManager(exchange, {AAPL: 10})
    outcome = manager.sell(AAPL, 10)
    assert outcome.status == TradeStatus.EXCHANGE_REJECTED
    assert manager.quantity(AAPL) == 10


def test_sell_removes_holdings_before_submitting():
    exchange = _mock_exchange()
    seen = []

    def submit_sell(instrument, quantity):
        seen.append(manager.quantity(instrument))
        return Decimal("1")

    exchange.submit_sell.side_effect = submit_sell
    manager = PortfolioManager(exchange, {AAPL: 10})
    manager.sell(AAPL, 4)
    assert seen == [6]


def test_sell_exchange_unavailable_restores_and_propagates():
    exchange = _mock_exchange()
    exchange.submit_sell.side_effect = ExchangeUnavailableError("down")
    manager = PortfolioManager(exchange, {AAPL: 10})
    with pytest.raises(ExchangeUnavailableError):
        manager.sell(AAPL, 3)
    assert manager.quantity(AAPL) == 10


@pytest.mark.parametrize("quantity", [0, -1])
def test_sell_invalid_quantity(quantity):
    exchange = _mock_exchange()
    manager = PortfolioManager(exchange, {AAPL: 10})
    with pytest.raises(ValidationError):
        manager.sell(AAPL, quantity)
    exchange.submit_sell.assert_not_called()
    assert manager.quantity(AAPL) == 10


def test_holdings_property_is_read_only():
    manager = PortfolioManager(_mock_exchange(), {AAPL: 1})
    with pytest.raises(TypeError):
        manager.holdings[AAPL] = 50
    assert manager.quantity(AAPL) == 1


# --- Scenario against the paper exchange ---


def test_buy_then_oversell_then_sell_scenario():
    prices = {"AAPL": Decimal("150")}
    exchange = PaperExchange(initial_cash=Decimal("10000"), latest_prices=prices)
    manager = PortfolioManager(exchange)
    assert manager.get_market_value() == Decimal("0")

    outcome = manager.buy(AAPL, 10)
    assert outcome.amount == Decimal("1500")
    assert dict(manager.holdings) == {AAPL: 10}
    assert manager.get_market_value() == Decimal("1500")

    outcome = manager.sell(AAPL, 15)
    assert outcome.status == TradeStatus.INSUFFICIENT_HOLDINGS
    assert dict(manager.holdings) == {AAPL: 10}

    prices["AAPL"] = Decimal("160")
    outcome = manager.sell(AAPL, 10)
    assert outcome.filled
    assert outcome.amount == Decimal("1600")
    assert manager.quantity(AAPL) == 0
    assert AAPL not in manager.holdings
    assert exchange.cash == Decimal("10100")


def test_halted_sell_rolls_back_against_paper_exchange():
    exchange = PaperExchange(initial_cash=Decimal("1000"), latest_prices={"AAPL": Decimal("100")})
    manager = PortfolioManager(exchange)
    manager.buy(AAPL, 5)
    exchange.halt(AAPL)
    outcome = manager.sell(AAPL, 5)
    assert outcome.status == TradeStatus.EXCHANGE_REJECTED
    assert manager.quantity(AAPL) == 5
    assert exchange.position(AAPL) == 5


# --- Rollback and concurrency ---


def test_sell_unexpected_error_restores_and_propagates():
    exchange = _mock_exchange()
    exchange.submit_sell.side_effect = RuntimeError("boom")
    manager = PortfolioManager(exchange, {AAPL: 10})
    with pytest.raises(RuntimeError, match="boom"):
        manager.sell(AAPL, 4)
    assert manager.quantity(AAPL) == 10


def test_concurrent_sells_never_oversell():
    exchange = _mock_exchange()
    exchange.submit_sell.return_value = Decimal("1")
    manager = PortfolioManager(exchange, {AAPL: 60})
    outcomes = []
    observed = []
    lock = threading.Lock()

    def worker():
        for _ in range(20):
            outcome = manager.sell(AAPL, 3)
            with lock:
                outcomes.append(outcome)
                observed.append(manager.quantity(AAPL))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    fills = [o for o in outcomes if o.filled]
    assert len(fills) * 3 == 60
    assert all(o.status == TradeStatus.INSUFFICIENT_HOLDINGS for o in outcomes if not o.filled)
    assert min(observed) >= 0
    assert manager.quantity(AAPL) == 0
