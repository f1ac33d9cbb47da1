"""Core calculation engine for the financing calculator.

This module turns one ``Scenario`` plus the shared ``GlobalRates`` into an
``EvaluatedScenario``: the resolved interest rate, a month-by-month
repayment schedule and a cost summary including an inflation-discounted
present value. Two branches exist:

* loan mode builds an amortization schedule for equal (annuity) or declining
  installments, with an optional interest-only grace period, upfront fees and
  a one-off grant credited against total cost;
* own-funds mode has no schedule and charges the opportunity cost of the cash
  instead of interest.

Evaluation is a pure function of its arguments and keeps no state between
calls.
"""

from __future__ import annotations

import logging
from decimal import Decimal, getcontext
from typing import List, Optional

from .config import EngineSettings
from .data_models import (
    CostSummary,
    EvaluatedScenario,
    FinancingMode,
    GlobalRates,
    GrantMode,
    InstallmentStyle,
    RateMode,
    Scenario,
    ScheduleRow,
)
from .errors import ConfigurationError
from .utils import coerce_decimal

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
TWELVE = Decimal("12")

_DEFAULT_SETTINGS = EngineSettings()


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, or so
    small that ``(1 + i)^n`` rounds to 1, the payment simplifies to ``P / n``.
    """
    if term <= 0:
        raise ConfigurationError("Repayment term must be positive")
    factor = (ONE + rate_per_month) ** term
    if factor == ONE:
        return principal / Decimal(term)
    return principal * (rate_per_month * factor) / (factor - ONE)


def _growth_base(rate_percent: Decimal, what: str, scenario_id: str) -> Decimal:
    base = ONE + rate_percent / HUNDRED
    if base <= 0:
        raise ConfigurationError(f"{what} of {rate_percent}% is not a usable rate", scenario_id)
    return base


def _validate_term(scenario: Scenario, max_term_months: int) -> None:
    if scenario.term_months < 1:
        raise ConfigurationError(
            f"Term must be at least one month; got {scenario.term_months}", scenario.id
        )
    if scenario.term_months > max_term_months:
        raise ConfigurationError(
            f"Term of {scenario.term_months} months exceeds the {max_term_months}-month limit",
            scenario.id,
        )


def _evaluate_own_funds(scenario: Scenario, rates: GlobalRates) -> EvaluatedScenario:
    """Opportunity-cost view of paying for the project in cash today.

    The spent amount is already at present value, so no discounting applies;
    its extra cost is what it would have earned at the opportunity rate over
    the term: ``A * (1 + rate)^(T / 12) - A``.
    """
    amount = coerce_decimal(scenario.principal)
    opportunity_rate = coerce_decimal(scenario.opportunity_rate)
    if opportunity_rate == 0:
        opportunity_rate = coerce_decimal(rates.inflation_rate)
    years = Decimal(scenario.term_months) / TWELVE
    growth = _growth_base(opportunity_rate, "Opportunity rate", scenario.id)
    opportunity_cost = amount * growth ** years - amount

    summary = CostSummary(
        loan_amount=ZERO,
        own_contribution=amount,
        total_interest=ZERO,
        total_upfront_costs=amount,
        grant_amount=ZERO,
        opportunity_cost=opportunity_cost,
        total_cost_of_project=amount + opportunity_cost,
        present_value_total=amount,
        real_benefit=ZERO,
    )
    return EvaluatedScenario(
        scenario=scenario,
        effective_annual_rate=ZERO,
        schedule=(),
        summary=summary,
    )


def _evaluate_loan(scenario: Scenario, rates: GlobalRates, epsilon: Decimal) -> EvaluatedScenario:
    principal = coerce_decimal(scenario.principal)
    term = scenario.term_months
    grace = scenario.grace_months
    if grace < 0:
        raise ConfigurationError(f"Grace period cannot be negative; got {grace}", scenario.id)
    repayment_months = term - grace
    if repayment_months < 1:
        raise ConfigurationError(
            f"Grace period of {grace} months leaves no repayment months in a "
            f"{term}-month term",
            scenario.id,
        )

    if scenario.rate_mode == RateMode.FIXED:
        annual_rate = coerce_decimal(scenario.fixed_rate)
    else:
        annual_rate = coerce_decimal(scenario.margin) + coerce_decimal(rates.reference_rate)
    if annual_rate < 0:
        raise ConfigurationError(f"Annual rate cannot be negative; got {annual_rate}%", scenario.id)
    rate_per_month = annual_rate / HUNDRED / TWELVE

    grant_value = coerce_decimal(scenario.grant_value)
    if scenario.grant_mode == GrantMode.PERCENT_OF_PRINCIPAL:
        grant = principal * grant_value / HUNDRED
    else:
        grant = grant_value

    fees = sum((coerce_decimal(item.value) for item in scenario.other_upfront_costs), ZERO)
    upfront_cost = principal * coerce_decimal(scenario.commission_percent) / HUNDRED + fees

    inflation = ZERO if scenario.ignore_inflation else coerce_decimal(rates.inflation_rate)
    inflation_base = _growth_base(inflation, "Inflation", scenario.id)
    monthly_inflation = inflation_base ** (ONE / TWELVE) - ONE

    # The annuity payment is fixed for the whole repayment period, so it is
    # computed once against the original repayment length.
    if scenario.installment_style == InstallmentStyle.EQUAL:
        level_payment = _calculate_annuity_payment(principal, rate_per_month, repayment_months)
    else:
        constant_principal = principal / Decimal(repayment_months)

    schedule: List[ScheduleRow] = []
    balance = principal
    total_interest = ZERO
    npv = upfront_cost - grant

    for month in range(1, term + 1):
        interest_payment = balance * rate_per_month

        if month <= grace:
            principal_payment = ZERO
            installment = interest_payment
        elif scenario.installment_style == InstallmentStyle.EQUAL:
            installment = level_payment
            principal_payment = installment - interest_payment
        else:
            principal_payment = constant_principal
            installment = principal_payment + interest_payment

        # Pay off whatever is left in the last month, or when the regular
        # principal would take the balance to (almost) zero.
        if balance - principal_payment < epsilon or month == term:
            principal_payment = balance
            installment = principal_payment + interest_payment

        balance -= principal_payment
        total_interest += interest_payment
        npv += installment / (ONE + monthly_inflation) ** month

        schedule.append(
            ScheduleRow(
                month=month,
                interest_portion=interest_payment,
                principal_portion=principal_payment,
                total_installment=installment,
                remaining_balance=max(ZERO, balance),
            )
        )

    summary = CostSummary(
        loan_amount=principal,
        own_contribution=ZERO,
        total_interest=total_interest,
        total_upfront_costs=upfront_cost,
        grant_amount=grant,
        opportunity_cost=ZERO,
        total_cost_of_project=upfront_cost + total_interest + principal - grant,
        present_value_total=npv,
        real_benefit=principal - npv,
    )
    return EvaluatedScenario(
        scenario=scenario,
        effective_annual_rate=annual_rate,
        schedule=tuple(schedule),
        summary=summary,
    )


def evaluate_scenario(
    scenario: Scenario,
    rates: GlobalRates,
    settings: Optional[EngineSettings] = None,
) -> EvaluatedScenario:
    """Compute the schedule and cost summary for one financing option.

    Parameters
    ----------
    scenario: Scenario
        The financing option. It is never modified; the result wraps it.
    rates: GlobalRates
        Reference rate for indexed loans and the inflation rate used for
        present-value discounting (and as the default opportunity rate).
    settings: EngineSettings, optional
        Engine behaviour switches: the final-month correction threshold, the
        longest accepted term and whether own-funds mode is allowed. Defaults are used when omitted.

    Returns
    -------
    EvaluatedScenario
        Effective annual rate, schedule rows (one per month in loan mode,
        none in own-funds mode) and the cost summary.

    Raises
    ------
    ConfigurationError
        If the scenario cannot form a valid schedule: a term shorter than one
        month or longer than ``settings.max_term_months``, a negative
        principal, grace period or loan rate, a grace period covering the
        whole term, an inflation or opportunity rate at or below -100 %, or
        own-funds mode while it is disabled.
    """
    settings = settings or _DEFAULT_SETTINGS
    _validate_term(scenario, settings.max_term_months)
    if coerce_decimal(scenario.principal) < 0:
        raise ConfigurationError(
            f"Principal cannot be negative; got {scenario.principal}", scenario.id
        )

    if scenario.financing_mode == FinancingMode.OWN_FUNDS:
        if not settings.own_funds_enabled:
            raise ConfigurationError("Own-funds financing is disabled", scenario.id)
        result = _evaluate_own_funds(scenario, rates)
    else:
        result = _evaluate_loan(scenario, rates, settings.balance_epsilon)

    logger.debug(
        "Evaluated scenario %s (%s): rate=%s%% total_cost=%s",
        scenario.id,
        scenario.financing_mode.value,
        result.effective_annual_rate,
        result.summary.total_cost_of_project,
    )
    return result
