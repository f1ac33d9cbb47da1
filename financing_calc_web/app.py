"""JSON API for the financing calculator.

The browser front end owns forms, tables and charts; this app only turns the
scenario records it posts into evaluated results. Every request is evaluated
from scratch, so the front end can simply re-post on each input change.
"""

import logging
import os

from flask import Flask, jsonify, request

from financing_calc.comparison import compare_scenarios
from financing_calc.config import EngineSettings
from financing_calc.engine import evaluate_scenario
from financing_calc.errors import ConfigurationError
from financing_calc.rates import ReferenceRateProvider, refresh_global_rates
from financing_calc.scenarios import (
    build_rates,
    build_scenario,
    default_scenarios,
    parse_scenario_payload,
    scenario_to_dict,
)
from financing_calc.utils import coerce_int

logger = logging.getLogger(__name__)

DEFAULT_MAX_SCENARIOS = 20


def max_scenarios_from_env(environ) -> int:
    """Comparison size limit; unreadable or non-positive values use the default."""
    limit = coerce_int(environ.get("FINCALC_MAX_SCENARIOS"), DEFAULT_MAX_SCENARIOS)
    return limit if limit >= 1 else DEFAULT_MAX_SCENARIOS


app = Flask(__name__)
app.config["ENGINE_SETTINGS"] = EngineSettings.from_env()
app.config["MAX_SCENARIOS"] = max_scenarios_from_env(os.environ)
rate_provider = ReferenceRateProvider.from_settings(app.config["ENGINE_SETTINGS"])


def _settings() -> EngineSettings:
    return app.config["ENGINE_SETTINGS"]


def _base_rates():
    """Configured default rates, enriched by the rate feed when one is set."""
    return refresh_global_rates(_settings().default_rates(), rate_provider)


def _rates_to_dict(rates) -> dict:
    return {
        "reference_rate": float(rates.reference_rate),
        "inflation_rate": float(rates.inflation_rate),
    }


@app.get("/api/health")
def health():
    return jsonify({"status": "ok"})


@app.get("/api/defaults")
def defaults():
    rates = _base_rates()
    return jsonify(
        {
            "rates": _rates_to_dict(rates),
            "scenarios": [scenario_to_dict(s) for s in default_scenarios()],
        }
    )


@app.post("/api/evaluate")
def evaluate():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Expected a JSON object"}), 400
    raw = payload.get("scenario", payload)
    if not isinstance(raw, dict):
        return jsonify({"error": "Scenario must be a JSON object"}), 400
    rates = build_rates(payload.get("rates"), _base_rates())
    scenario = build_scenario(raw)
    try:
        result = evaluate_scenario(scenario, rates, _settings())
    except ConfigurationError as exc:
        logger.info("Rejected scenario %s: %s", scenario.id, exc)
        return jsonify({"id": scenario.id, "error": str(exc)}), 422
    data = result.to_dict(include_schedule=request.args.get("schedule", "1") != "0")
    data["rates"] = _rates_to_dict(rates)
    return jsonify(data)


@app.post("/api/compare")
def compare():
    """Evaluate a list of scenarios and report the cheapest and dearest.

    Misconfigured scenarios are reported with an ``error`` entry in place
    and left out of the ranking instead of failing the whole request.
    """
    payload = request.get_json(silent=True)
    try:
        scenarios, rates = parse_scenario_payload(payload, _base_rates())
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    if not scenarios:
        return jsonify({"error": "No scenarios to compare"}), 400
    if len(scenarios) > app.config["MAX_SCENARIOS"]:
        return jsonify({"error": f"At most {app.config['MAX_SCENARIOS']} scenarios can be compared"}), 400

    include_schedule = request.args.get("schedule", "0") == "1"
    entries = []
    evaluated = []
    for scenario in scenarios:
        try:
            result = evaluate_scenario(scenario, rates, _settings())
        except ConfigurationError as exc:
            entries.append({"id": scenario.id, "name": scenario.name, "error": str(exc)})
            continue
        evaluated.append(result)
        entries.append(result.to_dict(include_schedule=include_schedule))

    body = {"rates": _rates_to_dict(rates), "results": entries, "best": None, "worst": None, "savings": None}
    if evaluated:
        comparison = compare_scenarios(evaluated)
        body["best"] = comparison.best.id
        body["worst"] = comparison.worst.id
        body["savings"] = float(comparison.savings)
    return jsonify(body)


if __name__ == "__main__":
    print("Starting financing calculator API...")
    app.run(debug=os.environ.get("FLASK_DEBUG") == "1")
