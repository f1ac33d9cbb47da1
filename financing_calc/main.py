"""Command-line interface for the financing calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can evaluate a single financing option, compare a set of
options stored in a JSON file, or dump the stock comparison set as a starting
point for their own file. Results can be printed to the terminal or exported
to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .comparison import compare_scenarios, evaluate_scenarios
from .config import EngineSettings
from .data_models import Comparison, EvaluatedScenario, GlobalRates
from .engine import evaluate_scenario
from .errors import ConfigurationError
from .formatter import print_comparison, print_schedule, print_summary
from .rates import ReferenceRateProvider
from .scenarios import build_scenario, default_scenarios, load_scenarios, scenario_to_dict
from .utils import parse_amount


def parse_fee_strings(values: Tuple[str, ...]) -> List[Dict[str, Any]]:
    fees: List[Dict[str, Any]] = []
    for item in values:
        name, sep, amount = item.rpartition(":")
        if not sep or not name:
            raise click.BadParameter(f"Fee must be in NAME:AMOUNT format; got {item}")
        try:
            value = parse_amount(amount)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        fees.append({"name": name, "value": value})
    return fees


def resolve_rates(
    settings: EngineSettings,
    reference_rate: Optional[float],
    inflation: Optional[float],
) -> GlobalRates:
    """Combine configured defaults, an optional rate feed and explicit options.

    Explicit command-line values always win over the feed and the defaults.
    """
    rates = settings.default_rates()
    if reference_rate is None and settings.rate_url:
        provider = ReferenceRateProvider.from_settings(settings)
        rates = GlobalRates(reference_rate=provider.current(), inflation_rate=rates.inflation_rate)
    return GlobalRates(
        reference_rate=rates.reference_rate if reference_rate is None else parse_amount(str(reference_rate)),
        inflation_rate=rates.inflation_rate if inflation is None else parse_amount(str(inflation)),
    )


def export_to_json(path: Path, data: Any) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, result: EvaluatedScenario) -> None:
    """Export the schedule of one scenario to a CSV file."""
    header = ["Month", "Installment", "Interest", "Principal", "Remaining_Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in result.schedule:
            writer.writerow(
                [
                    row.month,
                    float(row.total_installment),
                    float(row.interest_portion),
                    float(row.principal_portion),
                    float(row.remaining_balance),
                ]
            )


def comparison_to_dict(comparison: Comparison, rates: GlobalRates) -> Dict[str, Any]:
    return {
        "rates": {
            "reference_rate": float(rates.reference_rate),
            "inflation_rate": float(rates.inflation_rate),
        },
        "best": comparison.best.id,
        "worst": comparison.worst.id,
        "savings": float(comparison.savings),
        "results": [r.to_dict() for r in comparison.results],
    }


rate_options = [
    click.option("--reference-rate", "reference_rate", type=float, help="Reference (benchmark) rate in percent"),
    click.option("--inflation", "inflation", type=float, help="Expected annual inflation in percent"),
]


def with_rate_options(func):
    for option in reversed(rate_options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Compare loans, grants and own-funds financing by total and present-value cost."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = EngineSettings.from_env()


@cli.command()
@click.option("--name", "name", default="Scenario", help="Label for the option")
@click.option("--principal", "-p", "principal", required=True, help="Financed amount (or cash spent for --own-funds)")
@click.option("--term", "-t", "term", required=True, type=int, help="Term in months")
@click.option("--grace", "grace", type=int, default=0, help="Interest-only months at the start")
@click.option("--rate-mode", "rate_mode", type=click.Choice(["fixed", "indexed"]), default="fixed", help="Fixed rate or margin over the reference rate")
@click.option("--fixed-rate", "-r", "fixed_rate", type=float, default=0.0, help="Annual fixed rate (percent)")
@click.option("--margin", "margin", type=float, default=0.0, help="Margin over the reference rate (percent)")
@click.option("--commission", "commission", type=float, default=0.0, help="Origination commission (percent of principal)")
@click.option("--fee", "fee", multiple=True, help="Other upfront fee in NAME:AMOUNT format")
@click.option("--type", "installment_style", type=click.Choice(["equal", "declining"]), default="declining", help="Installment type")
@click.option("--grant", "grant", default="0", help="Grant or write-off value")
@click.option("--grant-mode", "grant_mode", type=click.Choice(["amount", "percent"]), default="amount", help="Whether --grant is an amount or a percent of principal")
@click.option("--ignore-inflation", "ignore_inflation", is_flag=True, help="Do not discount this option's cash flows")
@click.option("--own-funds", "own_funds", is_flag=True, help="Finance from own cash reserves instead of a loan")
@click.option("--opportunity-rate", "opportunity_rate", type=float, help="Return the cash would otherwise earn (percent); defaults to inflation")
@with_rate_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_obj
def evaluate(
    settings: EngineSettings,
    name: str,
    principal: str,
    term: int,
    grace: int,
    rate_mode: str,
    fixed_rate: float,
    margin: float,
    commission: float,
    fee: Tuple[str, ...],
    installment_style: str,
    grant: str,
    grant_mode: str,
    ignore_inflation: bool,
    own_funds: bool,
    opportunity_rate: Optional[float],
    reference_rate: Optional[float],
    inflation: Optional[float],
    output: Optional[str],
) -> None:
    """Compute the cost summary and schedule for one financing option."""
    try:
        principal_value = parse_amount(principal)
        grant_value = parse_amount(grant)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    raw = {
        "id": "cli",
        "name": name,
        "financing_mode": "own_funds" if own_funds else "loan",
        "principal": principal_value,
        "term_months": term,
        "grace_months": grace,
        "rate_mode": rate_mode,
        "fixed_rate": fixed_rate,
        "margin": margin,
        "commission_percent": commission,
        "other_upfront_costs": parse_fee_strings(fee),
        "installment_style": installment_style,
        "grant_mode": grant_mode,
        "grant_value": grant_value,
        "ignore_inflation": ignore_inflation,
        "opportunity_rate": opportunity_rate,
    }
    rates = resolve_rates(settings, reference_rate, inflation)
    try:
        result = evaluate_scenario(build_scenario(raw), rates, settings)
    except ConfigurationError as exc:
        raise click.ClickException(f"Invalid scenario: {exc}")

    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result.to_dict())
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Result exported to {path}")
        return

    print_summary(result)
    if result.schedule:
        max_rows = 120
        if len(result.schedule) > max_rows:
            click.echo(f"Schedule has {len(result.schedule)} rows; showing first {max_rows} rows.")
        print_schedule(result.schedule[:max_rows])


@cli.command()
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@with_rate_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.pass_obj
def compare(
    settings: EngineSettings,
    scenario_file: Path,
    reference_rate: Optional[float],
    inflation: Optional[float],
    output: Optional[str],
) -> None:
    """Compare the financing options stored in SCENARIO_FILE.

    The file holds a JSON list of scenarios, or an object with a
    ``scenarios`` list and optional ``rates`` (referenceRate, inflationRate).
    Rates given on the command line take precedence over the file.
    """
    try:
        scenarios, file_rates = load_scenarios(scenario_file, resolve_rates(settings, None, None))
    except (OSError, ValueError) as exc:
        raise click.ClickException(f"Cannot read {scenario_file}: {exc}")
    if not scenarios:
        raise click.ClickException(f"No scenarios found in {scenario_file}")
    rates = GlobalRates(
        reference_rate=file_rates.reference_rate if reference_rate is None else parse_amount(str(reference_rate)),
        inflation_rate=file_rates.inflation_rate if inflation is None else parse_amount(str(inflation)),
    )
    try:
        results = evaluate_scenarios(scenarios, rates, settings)
    except ConfigurationError as exc:
        raise click.ClickException(f"Invalid scenario {exc.scenario_id}: {exc}")
    comparison = compare_scenarios(results)

    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Comparison export must use .json extension")
        export_to_json(path, comparison_to_dict(comparison, rates))
        click.echo(f"Comparison exported to {path}")
    else:
        print_comparison(comparison)


@cli.command()
@click.pass_obj
def defaults(settings: EngineSettings) -> None:
    """Print the stock comparison set as JSON, ready to edit and pass to compare."""
    rates = settings.default_rates()
    data = {
        "rates": {
            "referenceRate": float(rates.reference_rate),
            "inflationRate": float(rates.inflation_rate),
        },
        "scenarios": [scenario_to_dict(s) for s in default_scenarios()],
    }
    click.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    cli()
