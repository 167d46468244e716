"""
Holdings: the in-memory ledger of units owned per instrument.

Quantities are non-negative ints; an absent instrument holds 0. The ledger is
mutated only through add_holdings/remove_holdings. Callers see read-only snapshots.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType

from stockfolio.errors import InsufficientHoldingsError, ValidationError
from stockfolio.instrument import Instrument, as_instrument


def validate_quantity(quantity: int, *, allow_zero: bool = False) -> int:
    """Return quantity if it is an int > 0 (or >= 0 with allow_zero); raise ValidationError otherwise."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"Quantity must be an integer, got {quantity!r}")
    if quantity < 0 or (quantity == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "greater than zero"
        raise ValidationError(f"Quantity must be {bound}, got {quantity}")
    return quantity


class Holdings:
    """
    Instrument -> quantity ledger.

    Every read and write takes the ledger lock. The lock is re-entrant and
    exposed so a caller can make a check-then-act sequence atomic.
    """

    def __init__(self) -> None:
        self._positions: dict[Instrument, int] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_mapping(cls, seed: Mapping[Instrument | str, int]) -> "Holdings":
        """Build a ledger from an initial instrument -> quantity mapping. Zero entries are dropped."""
        holdings = cls()
        for instrument, quantity in seed.items():
            if validate_quantity(quantity, allow_zero=True):
                holdings.add_holdings(instrument, quantity)
        return holdings

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def quantity(self, instrument: Instrument | str) -> int:
        """Units held of instrument. 0 if not present."""
        with self._lock:
            return self._positions.get(as_instrument(instrument), 0)

    def add_holdings(self, instrument: Instrument | str, quantity: int) -> None:
        validate_quantity(quantity)
        key = as_instrument(instrument)
        with self._lock:
            self._positions[key] = self._positions.get(key, 0) + quantity

    def remove_holdings(self, instrument: Instrument | str, quantity: int) -> None:
        """Decrement holdings; raise InsufficientHoldingsError (ledger untouched) if fewer are held."""
        validate_quantity(quantity)
        key = as_instrument(instrument)
        with self._lock:
            available = self._positions.get(key, 0)
            if available < quantity:
                raise InsufficientHoldingsError(key, quantity, available)
            remaining = available - quantity
            if remaining:
                self._positions[key] = remaining
            else:
                del self._positions[key]

    def has_at_least(self, instrument: Instrument | str, quantity: int) -> bool:
        validate_quantity(quantity, allow_zero=True)
        return self.quantity(instrument) >= quantity

    def snapshot(self) -> Mapping[Instrument, int]:
        """Read-only copy of the ledger. Later mutations are not reflected in it."""
        with self._lock:
            return MappingProxyType(dict(self._positions))

    def __len__(self) -> int:
        with self._lock:
            return len(self._positions)

    def __contains__(self, instrument: object) -> bool:
        if isinstance(instrument, str) and not instrument.strip():
            return False
        if not isinstance(instrument, (Instrument, str)):
            return False
        return self.quantity(instrument) > 0

    def __repr__(self) -> str:
        items = ", ".join(f"{k.symbol}: {v}" for k, v in sorted(self.snapshot().items()))
        return f"Holdings({{{items}}})"
