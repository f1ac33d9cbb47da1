"""Output helpers for the financing calculator.

This module renders cost summaries, repayment schedules and scenario
comparisons in a plain tabular text format for the terminal. Amounts are
printed with two decimals and no currency symbol.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import Comparison, EvaluatedScenario, FinancingMode, ScheduleRow


def print_summary(result: EvaluatedScenario) -> None:
    """Print the cost summary of one evaluated scenario."""
    summary = result.summary
    print(f"Summary: {result.name}")
    print("-" * 72)
    if result.scenario.financing_mode == FinancingMode.OWN_FUNDS:
        print(f"Own contribution   : {summary.own_contribution:.2f}")
        print(f"Opportunity cost   : {summary.opportunity_cost:.2f}")
    else:
        print(f"Loan amount        : {summary.loan_amount:.2f}")
        print(f"Annual rate        : {result.effective_annual_rate:.2f}%")
        print(f"Total interest     : {summary.total_interest:.2f}")
        print(f"Upfront costs      : {summary.total_upfront_costs:.2f}")
        if summary.grant_amount:
            print(f"Grant / write-off  : {summary.grant_amount:.2f}")
    print(f"Total cost         : {summary.total_cost_of_project:.2f}")
    print(f"Present value      : {summary.present_value_total:.2f}")
    if summary.real_benefit:
        print(f"Real benefit       : {summary.real_benefit:.2f}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleRow]) -> None:
    """Print the repayment schedule as a simple table."""
    headers = ["Month", "Installment", "Interest", "Principal", "Remaining"]
    print("\t".join(headers))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.month),
                    f"{row.total_installment:.2f}",
                    f"{row.interest_portion:.2f}",
                    f"{row.principal_portion:.2f}",
                    f"{row.remaining_balance:.2f}",
                ]
            )
        )


def print_comparison(comparison: Comparison) -> None:
    """Print all compared options side by side and highlight the cheapest.

    For own-funds options the "Interest" column shows the opportunity cost,
    marked with an asterisk.
    """
    print("Comparison")
    print("=" * 88)
    print(
        f"{'Option':28s} {'Grant':>12s} {'Interest':>15s} {'Total cost':>15s} {'Present value':>15s}"
    )
    for result in comparison.results:
        summary = result.summary
        if result.scenario.financing_mode == FinancingMode.OWN_FUNDS:
            extra = f"{summary.opportunity_cost:.2f}*"
        else:
            extra = f"{summary.total_interest:.2f}"
        marker = " <" if result is comparison.best else ""
        print(
            f"{result.name[:28]:28s} {summary.grant_amount:12.2f} {extra:>15s} "
            f"{summary.total_cost_of_project:15.2f} {summary.present_value_total:15.2f}{marker}"
        )
    print("=" * 88)
    print(f"Best option        : {comparison.best.name}")
    print(f"Worst option       : {comparison.worst.name}")
    print(f"Savings            : {comparison.savings:.2f}")
    if any(r.scenario.financing_mode == FinancingMode.OWN_FUNDS for r in comparison.results):
        print("* opportunity cost of spending own funds instead of investing them")
