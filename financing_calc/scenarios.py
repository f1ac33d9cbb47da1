"""Building scenario records from raw input.

Form handlers, JSON files and API payloads all describe scenarios as plain
mappings with loosely typed values. ``build_scenario`` reads such a mapping
(accepting both the camelCase keys used by the browser form and snake_case
keys), coerces every field to a sane value and returns an immutable
``Scenario``. Nothing in here raises on bad values; structural problems are
left for the engine to reject.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .data_models import (
    FeeItem,
    FinancingMode,
    GlobalRates,
    GrantMode,
    InstallmentStyle,
    RateMode,
    Scenario,
)
from .utils import coerce_bool, coerce_decimal, coerce_int

_RATE_MODES = {
    "fixed": RateMode.FIXED,
    "indexed": RateMode.INDEXED,
    "wibor": RateMode.INDEXED,
    "variable": RateMode.INDEXED,
}
_INSTALLMENT_STYLES = {
    "equal": InstallmentStyle.EQUAL,
    "annuity": InstallmentStyle.EQUAL,
    "declining": InstallmentStyle.DECLINING,
    "decreasing": InstallmentStyle.DECLINING,
}
_GRANT_MODES = {
    "amount": GrantMode.AMOUNT,
    "percent": GrantMode.PERCENT_OF_PRINCIPAL,
    "percent_of_principal": GrantMode.PERCENT_OF_PRINCIPAL,
}
_FINANCING_MODES = {
    "loan": FinancingMode.LOAN,
    "own_funds": FinancingMode.OWN_FUNDS,
    "own-funds": FinancingMode.OWN_FUNDS,
    "own": FinancingMode.OWN_FUNDS,
}


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in ``raw``."""
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _choice(value: Any, choices: Dict[str, Any], default: Any) -> Any:
    if isinstance(value, (RateMode, InstallmentStyle, GrantMode, FinancingMode)):
        return value
    if not isinstance(value, str):
        return default
    return choices.get(value.strip().lower(), default)


def _parse_fees(value: Any) -> Tuple[FeeItem, ...]:
    """Read upfront fees given as ``[{"name": ..., "value": ...}]`` or ``{name: value}``."""
    if isinstance(value, Mapping):
        items: Iterable[Any] = ({"name": k, "value": v} for k, v in value.items())
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return ()
    fees: List[FeeItem] = []
    for position, item in enumerate(items, start=1):
        if isinstance(item, FeeItem):
            fees.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        name = str(item.get("name") or f"Fee {position}")
        fees.append(FeeItem(name=name, value=coerce_decimal(item.get("value"))))
    return tuple(fees)


def build_scenario(raw: Mapping[str, Any], index: int = 1) -> Scenario:
    """Create a ``Scenario`` from a loosely typed mapping.

    Invalid or missing numbers fall back to defaults: the principal to 0
    (negative amounts too), the term to 1 month, every other number to 0.
    Unknown choice values fall back to a fixed-rate loan with declining
    installments and a grant given as an amount. An own-funds scenario without
    an explicit ``opportunityRate`` uses its ``fixedRate`` as the rate the cash
    would otherwise earn.
    """
    financing_mode = _choice(
        _pick(raw, "financing_mode", "financingMode", default="loan"),
        _FINANCING_MODES,
        FinancingMode.LOAN,
    )
    principal = coerce_decimal(_pick(raw, "principal", "amount"))
    if principal < 0:
        principal = Decimal("0")
    # A zero or unreadable term means one month; negative terms are left for
    # the engine to reject.
    term_months = coerce_int(_pick(raw, "term_months", "periodMonths", "term"), 1) or 1
    fixed_rate = coerce_decimal(_pick(raw, "fixed_rate", "fixedRate"))

    opportunity_raw = _pick(raw, "opportunity_rate", "opportunityRate")
    opportunity_rate: Optional[Decimal] = None
    if opportunity_raw is not None:
        opportunity_rate = coerce_decimal(opportunity_raw)
    elif financing_mode == FinancingMode.OWN_FUNDS:
        opportunity_rate = fixed_rate

    scenario_id = _pick(raw, "id", default=None)
    return Scenario(
        id=str(scenario_id) if scenario_id not in (None, "") else f"scenario-{index}",
        name=str(_pick(raw, "name", default="") or f"Option #{index}"),
        principal=principal,
        term_months=term_months,
        financing_mode=financing_mode,
        grace_months=coerce_int(_pick(raw, "grace_months", "graceMonths"), 0),
        rate_mode=_choice(_pick(raw, "rate_mode", "rateType", "rateMode"), _RATE_MODES, RateMode.FIXED),
        fixed_rate=fixed_rate,
        margin=coerce_decimal(_pick(raw, "margin")),
        commission_percent=coerce_decimal(_pick(raw, "commission_percent", "commissionPercent")),
        other_upfront_costs=_parse_fees(_pick(raw, "other_upfront_costs", "otherCosts")),
        installment_style=_choice(
            _pick(raw, "installment_style", "installmentType", "installmentStyle"),
            _INSTALLMENT_STYLES,
            InstallmentStyle.DECLINING,
        ),
        grant_mode=_choice(_pick(raw, "grant_mode", "grantType", "grantMode"), _GRANT_MODES, GrantMode.AMOUNT),
        grant_value=coerce_decimal(_pick(raw, "grant_value", "grantValue")),
        ignore_inflation=coerce_bool(_pick(raw, "ignore_inflation", "ignoreInflation", default=False)),
        opportunity_rate=opportunity_rate,
    )


def build_rates(raw: Optional[Mapping[str, Any]], default: GlobalRates) -> GlobalRates:
    """Read ``referenceRate``/``inflationRate`` overrides on top of ``default``."""
    if not raw or not isinstance(raw, Mapping):
        return default
    return GlobalRates(
        reference_rate=coerce_decimal(
            _pick(raw, "reference_rate", "referenceRate", "wibor"), default.reference_rate
        ),
        inflation_rate=coerce_decimal(
            _pick(raw, "inflation_rate", "inflationRate", "inflation"), default.inflation_rate
        ),
    )


def scenario_to_dict(scenario: Scenario) -> Dict[str, Any]:
    """Serialise a scenario using the same snake_case keys ``build_scenario`` reads."""
    data: Dict[str, Any] = {
        "id": scenario.id,
        "name": scenario.name,
        "financing_mode": scenario.financing_mode.value,
        "principal": float(scenario.principal),
        "term_months": scenario.term_months,
        "grace_months": scenario.grace_months,
        "rate_mode": scenario.rate_mode.value,
        "fixed_rate": float(scenario.fixed_rate),
        "margin": float(scenario.margin),
        "commission_percent": float(scenario.commission_percent),
        "other_upfront_costs": [
            {"name": fee.name, "value": float(fee.value)} for fee in scenario.other_upfront_costs
        ],
        "installment_style": scenario.installment_style.value,
        "grant_mode": scenario.grant_mode.value,
        "grant_value": float(scenario.grant_value),
        "ignore_inflation": scenario.ignore_inflation,
    }
    if scenario.opportunity_rate is not None:
        data["opportunity_rate"] = float(scenario.opportunity_rate)
    return data


def default_scenarios() -> List[Scenario]:
    """The stock comparison: an EU-backed loan, a commercial loan and own funds."""
    raw = [
        {
            "id": "1",
            "name": "EU-backed loan",
            "amount": 1_000_000,
            "periodMonths": 120,
            "rateType": "fixed",
            "fixedRate": 1.0,
            "installmentType": "decreasing",
            "grantType": "percent",
            "grantValue": 20,
        },
        {
            "id": "2",
            "name": "Commercial loan",
            "amount": 1_000_000,
            "periodMonths": 120,
            "rateType": "wibor",
            "fixedRate": 7.5,
            "margin": 2.5,
            "commissionPercent": 1,
            "installmentType": "decreasing",
        },
        {
            "id": "3",
            "name": "Own funds",
            "financingMode": "own_funds",
            "amount": 1_000_000,
            "periodMonths": 120,
            "fixedRate": 3.0,
        },
    ]
    return [build_scenario(item, index) for index, item in enumerate(raw, start=1)]


def parse_scenario_payload(
    payload: Any, default_rates: GlobalRates
) -> Tuple[List[Scenario], GlobalRates]:
    """Read either a bare list of scenarios or ``{"scenarios": [...], "rates": {...}}``."""
    if isinstance(payload, Mapping):
        items = payload.get("scenarios") or []
        rates = build_rates(payload.get("rates"), default_rates)
    else:
        items = payload
        rates = default_rates
    if not isinstance(items, list):
        raise ValueError("Scenarios must be given as a list")
    scenarios = [
        build_scenario(item, index)
        for index, item in enumerate(items, start=1)
        if isinstance(item, Mapping)
    ]
    return scenarios, rates


def load_scenarios(path: Path, default_rates: GlobalRates) -> Tuple[List[Scenario], GlobalRates]:
    """Load a comparison set from a JSON file."""
    with path.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    return parse_scenario_payload(payload, default_rates)
