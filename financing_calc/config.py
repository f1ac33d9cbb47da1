"""Runtime settings for the financing calculator.

Settings come from environment variables so that the CLI and the web app
can be configured the same way. Invalid values fall back to the defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .data_models import GlobalRates
from .utils import coerce_bool, coerce_decimal, coerce_int

DEFAULT_REFERENCE_RATE = Decimal("4.02")
DEFAULT_INFLATION_RATE = Decimal("3.0")
DEFAULT_BALANCE_EPSILON = Decimal("0.01")
DEFAULT_RATE_TIMEOUT = 5.0
DEFAULT_MAX_TERM_MONTHS = 1200


@dataclass(frozen=True)
class EngineSettings:
    reference_rate: Decimal = DEFAULT_REFERENCE_RATE
    inflation_rate: Decimal = DEFAULT_INFLATION_RATE
    # Remaining balance below which the current month pays off the loan.
    balance_epsilon: Decimal = DEFAULT_BALANCE_EPSILON
    max_term_months: int = DEFAULT_MAX_TERM_MONTHS
    own_funds_enabled: bool = True
    rate_url: str = ""
    rate_timeout: float = DEFAULT_RATE_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        env = os.environ if environ is None else environ
        epsilon = coerce_decimal(env.get("FINCALC_BALANCE_EPSILON"), DEFAULT_BALANCE_EPSILON)
        if epsilon < 0:
            epsilon = DEFAULT_BALANCE_EPSILON
        timeout = coerce_decimal(env.get("FINCALC_RATE_TIMEOUT"), Decimal(str(DEFAULT_RATE_TIMEOUT)))
        max_term = coerce_int(env.get("FINCALC_MAX_TERM_MONTHS"), DEFAULT_MAX_TERM_MONTHS)
        return cls(
            reference_rate=coerce_decimal(env.get("FINCALC_REFERENCE_RATE"), DEFAULT_REFERENCE_RATE),
            inflation_rate=coerce_decimal(env.get("FINCALC_INFLATION_RATE"), DEFAULT_INFLATION_RATE),
            balance_epsilon=epsilon,
            max_term_months=max_term if max_term >= 1 else DEFAULT_MAX_TERM_MONTHS,
            own_funds_enabled=coerce_bool(env.get("FINCALC_OWN_FUNDS_ENABLED", "1")),
            rate_url=env.get("FINCALC_RATE_URL", "").strip(),
            rate_timeout=float(timeout) if timeout > 0 else DEFAULT_RATE_TIMEOUT,
        )

    def default_rates(self) -> GlobalRates:
        return GlobalRates(reference_rate=self.reference_rate, inflation_rate=self.inflation_rate)
