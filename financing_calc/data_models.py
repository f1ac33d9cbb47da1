"""Data models for the financing comparison calculator.

This module defines dataclasses representing the entities the engine works
with: the global economic rates shared by a comparison, the scenario records
describing each financing option, and the evaluated results (schedule rows and
cost summary). Scenarios and results are frozen so that the engine can hand
back new objects without ever touching its inputs.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple


class FinancingMode(str, Enum):
    LOAN = "loan"
    OWN_FUNDS = "own_funds"


class RateMode(str, Enum):
    FIXED = "fixed"
    INDEXED = "indexed"  # margin + reference rate


class InstallmentStyle(str, Enum):
    EQUAL = "equal"
    DECLINING = "declining"


class GrantMode(str, Enum):
    AMOUNT = "amount"
    PERCENT_OF_PRINCIPAL = "percent"


@dataclass(frozen=True)
class GlobalRates:
    """Economic parameters shared by every scenario in a comparison.

    Attributes
    ----------
    reference_rate: Decimal
        Benchmark rate in percent per annum (e.g. WIBOR 3M). Used by
        scenarios whose rate is a margin over the benchmark.
    inflation_rate: Decimal
        Expected inflation in percent per annum, used to discount future
        installments to present value.
    """

    reference_rate: Decimal = Decimal("0")
    inflation_rate: Decimal = Decimal("0")


@dataclass(frozen=True)
class FeeItem:
    """A named one-off cost paid when the financing is arranged."""

    name: str
    value: Decimal


@dataclass(frozen=True)
class Scenario:
    """One financing option being compared.

    Numeric fields are expected to be already coerced (see
    ``financing_calc.scenarios.build_scenario``). Rates and percentages are
    expressed in percent, e.g. ``Decimal("7.5")`` for 7.5 %.
    """

    id: str
    name: str
    principal: Decimal
    term_months: int
    financing_mode: FinancingMode = FinancingMode.LOAN
    grace_months: int = 0
    rate_mode: RateMode = RateMode.FIXED
    fixed_rate: Decimal = Decimal("0")
    margin: Decimal = Decimal("0")
    commission_percent: Decimal = Decimal("0")
    other_upfront_costs: Tuple[FeeItem, ...] = ()
    installment_style: InstallmentStyle = InstallmentStyle.DECLINING
    grant_mode: GrantMode = GrantMode.AMOUNT
    grant_value: Decimal = Decimal("0")
    ignore_inflation: bool = False
    # Own-funds only: return the cash could earn elsewhere. ``None`` or zero
    # means the global inflation rate is used instead.
    opportunity_rate: Optional[Decimal] = None


@dataclass(frozen=True)
class ScheduleRow:
    """A single month of the repayment schedule."""

    month: int
    interest_portion: Decimal
    principal_portion: Decimal
    total_installment: Decimal
    remaining_balance: Decimal

    def to_dict(self) -> Dict[str, object]:
        return {
            "month": self.month,
            "interest": float(self.interest_portion),
            "principal": float(self.principal_portion),
            "installment": float(self.total_installment),
            "remaining_balance": float(self.remaining_balance),
        }


@dataclass(frozen=True)
class CostSummary:
    """Aggregate cost metrics for one evaluated scenario.

    ``present_value_total`` is the inflation-discounted value of all cash
    flows; ``real_benefit`` is positive when inflation erodes the real burden
    of the repayments below the nominal principal.
    """

    loan_amount: Decimal
    own_contribution: Decimal
    total_interest: Decimal
    total_upfront_costs: Decimal
    grant_amount: Decimal
    opportunity_cost: Decimal
    total_cost_of_project: Decimal
    present_value_total: Decimal
    real_benefit: Decimal

    def to_dict(self) -> Dict[str, float]:
        return {
            "loan_amount": float(self.loan_amount),
            "own_contribution": float(self.own_contribution),
            "total_interest": float(self.total_interest),
            "total_upfront_costs": float(self.total_upfront_costs),
            "grant_amount": float(self.grant_amount),
            "opportunity_cost": float(self.opportunity_cost),
            "total_cost_of_project": float(self.total_cost_of_project),
            "present_value_total": float(self.present_value_total),
            "real_benefit": float(self.real_benefit),
        }


@dataclass(frozen=True)
class EvaluatedScenario:
    """The original scenario together with everything computed for it."""

    scenario: Scenario
    effective_annual_rate: Decimal
    schedule: Tuple[ScheduleRow, ...]
    summary: CostSummary

    @property
    def id(self) -> str:
        return self.scenario.id

    @property
    def name(self) -> str:
        return self.scenario.name

    def to_dict(self, include_schedule: bool = True) -> Dict[str, object]:
        data: Dict[str, object] = {
            "id": self.scenario.id,
            "name": self.scenario.name,
            "financing_mode": self.scenario.financing_mode.value,
            "effective_annual_rate": float(self.effective_annual_rate),
            "summary": self.summary.to_dict(),
        }
        if include_schedule:
            data["schedule"] = [row.to_dict() for row in self.schedule]
        return data


@dataclass(frozen=True)
class Comparison:
    """Result of ranking a set of evaluated scenarios by total project cost."""

    best: EvaluatedScenario
    worst: EvaluatedScenario
    savings: Decimal
    results: Tuple[EvaluatedScenario, ...] = field(default=())
