"""Tests for ranking evaluated scenarios."""
from decimal import Decimal

import pytest

from financing_calc.comparison import compare_scenarios, evaluate_scenarios
from financing_calc.data_models import GlobalRates, Scenario
from financing_calc.scenarios import default_scenarios

NO_INFLATION = GlobalRates(reference_rate=Decimal("4.02"), inflation_rate=Decimal("0"))


def _free_loan(scenario_id: str, principal: str) -> Scenario:
    # Zero interest and no fees: total project cost equals the principal
    return Scenario(id=scenario_id, name=f"Option {scenario_id}", principal=Decimal(principal), term_months=12)


def test_best_and_worst_by_total_cost():
    results = evaluate_scenarios(
        [_free_loan("a", "5000"), _free_loan("b", "3000"), _free_loan("c", "9000")], NO_INFLATION
    )
    comparison = compare_scenarios(results)

    assert comparison.best.id == "b"
    assert comparison.worst.id == "c"
    assert comparison.savings == Decimal("6000")
    assert [r.id for r in comparison.results] == ["a", "b", "c"]


def test_ties_prefer_earliest_listed():
    results = evaluate_scenarios(
        [_free_loan("a", "4000"), _free_loan("b", "3000"), _free_loan("c", "3000"), _free_loan("d", "4000")],
        NO_INFLATION,
    )
    comparison = compare_scenarios(results)

    assert comparison.best.id == "b"
    assert comparison.worst.id == "a"


def test_single_scenario_is_best_and_worst():
    results = evaluate_scenarios([_free_loan("only", "1000")], NO_INFLATION)
    comparison = compare_scenarios(results)

    assert comparison.best is comparison.worst
    assert comparison.savings == 0


def test_empty_comparison_is_rejected():
    with pytest.raises(ValueError):
        compare_scenarios([])


def test_default_set_ranks_eu_loan_first():
    rates = GlobalRates(reference_rate=Decimal("4.02"), inflation_rate=Decimal("3.0"))
    comparison = compare_scenarios(evaluate_scenarios(default_scenarios(), rates))

    assert comparison.best.name == "EU-backed loan"
    assert comparison.worst.name == "Own funds"
    # 1,343,916.38 own funds vs 850,416.67 for the EU loan
    assert float(comparison.savings) == pytest.approx(493_499.71, abs=0.01)
