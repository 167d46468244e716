"""
Paper portfolio example: buy, refuse an oversell, sell, and value the portfolio.

Shows: PaperExchange as the exchange service, PortfolioManager outcomes,
valuation table and market value. Same manager API as with a live exchange.
"""

from __future__ import annotations

from decimal import Decimal

from stockfolio import Instrument, PaperExchange, PortfolioManager, Settings, TradeOutcome, configure_logging


def print_outcome(outcome: TradeOutcome) -> None:
    print(
        f"  {outcome.side.value} {outcome.quantity} {outcome.instrument} -> "
        f"{outcome.status.value} amount={outcome.amount} {outcome.message or ''}"
    )


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings)
    aapl = Instrument("AAPL")
    # Simulated latest prices (in real use, fed by market data)
    latest_prices: dict[str, Decimal] = {"AAPL": Decimal("150"), "MSFT": Decimal("300")}

    exchange = PaperExchange(initial_cash=Decimal("10000"), latest_prices=latest_prices)
    manager = PortfolioManager(exchange)

    print("--- Buy 10 AAPL and 2 MSFT ---")
    print_outcome(manager.buy(aapl, 10))
    print_outcome(manager.buy("MSFT", 2))
    print(manager.valuation().to_string(index=False))
    print(f"Market value: {manager.get_market_value()}")

    print("\n--- Sell 15 AAPL (only 10 held) ---")
    print_outcome(manager.sell(aapl, 15))

    print("\n--- Price moves to 160, sell 10 AAPL ---")
    latest_prices["AAPL"] = Decimal("160")
    print_outcome(manager.sell(aapl, 10))

    print("\n--- MSFT halted, sell is rejected and holdings restored ---")
    exchange.halt("MSFT")
    print_outcome(manager.sell("MSFT", 2))
    print(f"Holdings: {dict(manager.holdings)}")
    print(f"Exchange cash: {exchange.cash}")


if __name__ == "__main__":
    main()
