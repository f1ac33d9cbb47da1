"""Ranking helpers for a set of financing scenarios."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .config import EngineSettings
from .data_models import Comparison, EvaluatedScenario, GlobalRates, Scenario
from .engine import evaluate_scenario


def evaluate_scenarios(
    scenarios: Iterable[Scenario],
    rates: GlobalRates,
    settings: Optional[EngineSettings] = None,
) -> List[EvaluatedScenario]:
    """Evaluate every scenario against the same rates, preserving order."""
    return [evaluate_scenario(s, rates, settings) for s in scenarios]


def compare_scenarios(results: Sequence[EvaluatedScenario]) -> Comparison:
    """Pick the cheapest and the most expensive option by total project cost.

    On exact ties the earlier scenario in ``results`` wins both ways, so the
    outcome does not depend on anything but input order. ``savings`` is the
    cost difference between the worst and the best option.
    """
    if not results:
        raise ValueError("At least one evaluated scenario is required")
    best = worst = results[0]
    for current in results[1:]:
        cost = current.summary.total_cost_of_project
        if cost < best.summary.total_cost_of_project:
            best = current
        if cost > worst.summary.total_cost_of_project:
            worst = current
    savings = worst.summary.total_cost_of_project - best.summary.total_cost_of_project
    return Comparison(best=best, worst=worst, savings=savings, results=tuple(results))
