"""
Settings: runtime configuration from keyword arguments or environment variables.

STOCKFOLIO_LOG_LEVEL            logging level name for the stockfolio logger (default WARNING)
STOCKFOLIO_PAPER_INITIAL_CASH   starting cash of a paper exchange built from settings (default 0)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from stockfolio.errors import ValidationError

LOG_LEVEL_ENV = "STOCKFOLIO_LOG_LEVEL"
PAPER_INITIAL_CASH_ENV = "STOCKFOLIO_PAPER_INITIAL_CASH"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    paper_initial_cash: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        level = str(self.log_level).strip().upper()
        if level not in _LEVELS:
            raise ValidationError(f"Unknown log level {self.log_level!r}; expected one of {', '.join(_LEVELS)}")
        object.__setattr__(self, "log_level", level)
        try:
            cash = Decimal(str(self.paper_initial_cash))
        except InvalidOperation:
            raise ValidationError(f"paper_initial_cash must be a number, got {self.paper_initial_cash!r}") from None
        if not cash.is_finite() or cash < 0:
            raise ValidationError(f"paper_initial_cash must be non-negative, got {self.paper_initial_cash!r}")
        object.__setattr__(self, "paper_initial_cash", cash)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Read settings from environ (defaults to os.environ); unset variables keep their defaults."""
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}
        if env.get(LOG_LEVEL_ENV):
            kwargs["log_level"] = env[LOG_LEVEL_ENV]
        if env.get(PAPER_INITIAL_CASH_ENV):
            kwargs["paper_initial_cash"] = env[PAPER_INITIAL_CASH_ENV]
        return cls(**kwargs)


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply settings.log_level to the package logger and return it."""
    logger = logging.getLogger("stockfolio")
    logger.setLevel(settings.log_level)
    return logger
