"""Command-line interface for the mortgage calculators.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute a monthly payment, a full amortization
schedule, the effect of extra payments, compare two loans side by side, or
run any of the calculators (purchase, VA purchase, refinance, VA refinance,
affordability, DSCR, fix and flip, rent versus buy). Schedules can be
exported to JSON or CSV files and every calculator can print JSON instead of
a text table.
"""

from __future__ import annotations

import csv
import json
import shlex
from dataclasses import fields
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .calculators import (
    CALCULATORS,
    Calculator,
    LoanPayoffInputs,
    loan_payoff,
)
from .config import load_settings
from .data_models import (
    AmountOrPercent,
    LoanTerms,
    LumpSumCadence,
    PaymentFrequency,
    PayoffStrategy,
    Scenario,
    ScheduleEntry,
    TermUnit,
    YearsOrMonths,
)
from .engine import amortization_schedule, payment_for_terms, schedule_summary
from .formatter import (
    format_currency,
    format_percent,
    print_comparison,
    print_result,
    print_schedule,
    print_summary,
    schedule_rows,
    serialize,
)
from .forms import inputs_from_mapping, parse_date
from .log import setup_logging
from .rates import fetch_current_rates
from .utils import parse_amount, parse_year_month

MAX_PRINTED_ROWS = 120


def _bad_parameter(func, *args, **kwargs):
    """Call ``func`` and report a ``ValueError`` as a click usage error."""
    try:
        return func(*args, **kwargs)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_scenario(
    principal: str,
    rate: str,
    term: str,
    extra: Optional[str] = None,
    frequency: str = PaymentFrequency.MONTHLY.value,
    lump_sum: Optional[str] = None,
    lump_cadence: str = LumpSumCadence.ONCE.value,
    name: str = "Scenario",
) -> Scenario:
    terms = LoanTerms(
        principal=parse_amount(principal),
        annual_rate_percent=parse_amount(rate.rstrip("%")),
        term_months=YearsOrMonths.parse(term).months,
    )
    strategy = PayoffStrategy(
        extra_monthly_amount=parse_amount(extra) if extra else 0,
        frequency=frequency,
        lump_sum_amount=parse_amount(lump_sum) if lump_sum else 0,
        lump_sum_cadence=lump_cadence,
    )
    return Scenario(name=name, terms=terms, strategy=strategy)


def compute_schedule(scenario: Scenario, start_date: date):
    """Schedule entries and summary metrics of a scenario."""
    terms = scenario.terms
    entries = amortization_schedule(
        terms.principal, terms.annual_rate_percent, terms.term_months, start_date, scenario.strategy
    )
    summary = schedule_summary(entries, terms.term_months, start_date)
    summary["monthly_payment"] = float(payment_for_terms(terms))
    return entries, summary


def export_to_json(path: Path, schedule: List[ScheduleEntry], summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": summary, "schedule": schedule_rows(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Period",
        "Date",
        "Starting_Balance",
        "Payment",
        "Principal",
        "Interest",
        "Extra",
        "Ending_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in schedule_rows(schedule):
            writer.writerow(list(row.values()))


def loan_options(func):
    """Options describing a fixed-rate loan and its extra payments."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (500k, 1.2m, 250,000)"),
        click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", default="30y", show_default=True, help="Term as 30y, 360m or years"),
        click.option("--extra", "extra", help="Extra principal paid with every payment"),
        click.option(
            "--frequency",
            "frequency",
            type=click.Choice([f.value for f in PaymentFrequency]),
            default=PaymentFrequency.MONTHLY.value,
            show_default=True,
            help="How often the extra payment is made",
        ),
        click.option("--lump-sum", "lump_sum", help="Lump sum applied to principal"),
        click.option(
            "--lump-cadence",
            "lump_cadence",
            type=click.Choice([c.value for c in LumpSumCadence]),
            default=LumpSumCadence.ONCE.value,
            show_default=True,
            help="When the lump sum is applied",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--log-level", "log_level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """A command-line mortgage calculator suite."""
    settings = load_settings()
    setup_logging(log_level or settings.log_level)
    ctx.obj = settings


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", default="30y", show_default=True, help="Term as 30y, 360m or years")
def payment(principal: str, rate: str, term: str) -> None:
    """Print the monthly principal and interest payment."""
    scenario = _bad_parameter(build_scenario, principal, rate, term)
    click.echo(f"Monthly payment: {format_currency(payment_for_terms(scenario.terms))}")


@cli.command()
@loan_options
@click.option("--start-date", "-s", "start_date", required=True, help="First payment date (YYYY-MM)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: str,
    term: str,
    extra: Optional[str],
    frequency: str,
    lump_sum: Optional[str],
    lump_cadence: str,
    start_date: str,
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    scenario = _bad_parameter(build_scenario, principal, rate, term, extra, frequency, lump_sum, lump_cadence)
    start = _bad_parameter(parse_year_month, start_date)
    schedule_entries, summary = compute_schedule(scenario, start)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, schedule_entries, summary)
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule_entries)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(summary)
        # Limit schedule length printed to avoid flooding the terminal
        if len(schedule_entries) > MAX_PRINTED_ROWS:
            click.echo(
                f"Schedule has {len(schedule_entries)} rows; showing first {MAX_PRINTED_ROWS} rows."
            )
            print_schedule(schedule_entries[:MAX_PRINTED_ROWS])
        else:
            print_schedule(schedule_entries)


@cli.command()
@loan_options
@click.option("--start-date", "-s", "start_date", help="First payment date (YYYY-MM)")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def payoff(
    principal: str,
    rate: str,
    term: str,
    extra: Optional[str],
    frequency: str,
    lump_sum: Optional[str],
    lump_cadence: str,
    start_date: Optional[str],
    as_json: bool,
) -> None:
    """Show how much time and interest extra payments save."""
    values = {
        "principal": principal,
        "annual_rate": rate.rstrip("%"),
        "term": term,
        "extra_monthly": extra,
        "extra_frequency": frequency,
        "lump_sum": lump_sum,
        "lump_sum_cadence": lump_cadence,
        "first_payment_date": start_date,
    }
    inputs = _bad_parameter(inputs_from_mapping, LoanPayoffInputs, values, strict=True)
    result = loan_payoff(inputs)
    if as_json:
        click.echo(json.dumps(serialize(result), indent=2))
    else:
        print_result("Payoff", result)


_SCENARIO_FLAGS = {
    "-p": "principal",
    "--principal": "principal",
    "-r": "rate",
    "--rate": "rate",
    "-t": "term",
    "--term": "term",
    "--extra": "extra",
    "--frequency": "frequency",
    "--lump-sum": "lump_sum",
    "--lump-cadence": "lump_cadence",
}


def parse_scenario_opts(opts: str, name: str) -> Scenario:
    """Turn a quoted option string such as ``"-p 500k -r 6.5 -t 30y"`` into a scenario."""
    tokens = shlex.split(opts)
    params: Dict[str, Any] = {"term": "30y"}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token not in _SCENARIO_FLAGS:
            raise click.BadParameter(f"Unknown option in scenario: {token}")
        if i + 1 >= len(tokens):
            raise click.BadParameter(f"Option {token} needs a value")
        params[_SCENARIO_FLAGS[token]] = tokens[i + 1]
        i += 2
    for required in ("principal", "rate"):
        if required not in params:
            raise click.BadParameter(f"Scenario missing required option {required}")
    return _bad_parameter(build_scenario, name=name, **params)


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
@click.option("--start-date", "-s", "start_date", help="First payment date (YYYY-MM), this month by default")
def compare(scenario1: str, scenario2: str, start_date: Optional[str]) -> None:
    """Compare two loan scenarios.

    Scenarios are provided as quoted option strings, for example:

        mortgage-calc compare --scenario1 "-p 400k -r 6.5 -t 30y" --scenario2 "-p 400k -r 5.9 -t 15y"
    """
    start = _bad_parameter(parse_year_month, start_date) if start_date else date.today().replace(day=1)
    _, summary1 = compute_schedule(parse_scenario_opts(scenario1, "Scenario1"), start)
    _, summary2 = compute_schedule(parse_scenario_opts(scenario2, "Scenario2"), start)
    print_comparison(summary1, summary2)


@cli.command()
@click.pass_obj
def rates(settings) -> None:
    """Show current average 30- and 15-year fixed rates."""
    current = fetch_current_rates(settings.api_ninjas_key, timeout=settings.rates_timeout)
    click.echo(f"30-year fixed : {format_percent(current.thirty_year)}")
    click.echo(f"15-year fixed : {format_percent(current.fifteen_year)}")
    click.echo(f"As of         : {current.last_updated}")
    if current.error:
        click.echo(current.error)


def _default_text(value: Any) -> str:
    if isinstance(value, AmountOrPercent):
        return f"{value.value}%" if value.is_percent else str(value.value)
    if isinstance(value, YearsOrMonths):
        return f"{value.value}{'y' if value.unit is TermUnit.YEARS else 'm'}"
    return str(serialize(value))


def calculator_command(calc: Calculator) -> click.Command:
    """Build a click command with one option per field of the calculator's inputs."""
    params: List[click.Parameter] = []
    for f in fields(calc.inputs_type):
        params.append(
            click.Option(
                [f"--{f.name.replace('_', '-')}", f.name],
                default=None,
                help=f"default: {_default_text(f.default)}",
            )
        )
    takes_date = calc.id in ("refinance", "va-refinance")
    if takes_date:
        params.append(click.Option(["--as-of", "as_of"], help="Valuation date (YYYY-MM-DD), today by default"))
    params.append(click.Option(["--json", "as_json"], is_flag=True, help="Print the result as JSON"))

    def callback(as_json: bool, as_of: Optional[str] = None, **values: Any) -> None:
        inputs = _bad_parameter(inputs_from_mapping, calc.inputs_type, values, strict=True)
        if takes_date:
            when = _bad_parameter(parse_date, as_of) if as_of else None
            result = calc.run(inputs, as_of=when)
        else:
            result = calc.run(inputs)
        if as_json:
            click.echo(json.dumps(serialize(result), indent=2))
        else:
            print_result(calc.label, result)

    return click.Command(calc.id, callback=callback, params=params, help=f"{calc.label} calculator.")


for _calc in CALCULATORS.values():
    cli.add_command(calculator_command(_calc))


if __name__ == "__main__":
    cli()
