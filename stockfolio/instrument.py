"""
Instrument: identity of a tradable asset (e.g. a stock ticker).

Immutable and hashable; used as the ledger key.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockfolio.errors import ValidationError


@dataclass(frozen=True, order=True)
class Instrument:
    """A tradable asset, identified by its ticker symbol."""

    symbol: str

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValidationError(f"Instrument symbol must be a non-empty string, got {self.symbol!r}")
        object.__setattr__(self, "symbol", self.symbol.strip())

    def __str__(self) -> str:
        return self.symbol


def as_instrument(value: "Instrument | str") -> Instrument:
    """Coerce a ticker string to an Instrument. Instruments pass through."""
    if isinstance(value, Instrument):
        return value
    return Instrument(value)
