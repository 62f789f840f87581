"""Output helpers for the mortgage calculators.

This module renders schedules, summaries and calculator results as plain
text tables, and converts result objects into JSON-ready structures for the
exporters and the web API.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable

from .data_models import (
    AmortizationResult,
    NonAmortizing,
    PaymentBreakdown,
    PayoffComparison,
    ScheduleEntry,
    breakdown_rows,
)
from .programs import DTILimit

# fractions rendered as percentages
_RATIO_FIELDS = {"cap_rate", "cash_on_cash", "roi", "ltv_on_arv"}
# not worth printing in a text summary
_HIDDEN_FIELDS = {"rent_by_month"}


def format_currency(value: Any, digits: int = 2) -> str:
    """Format ``value`` as dollars with thousands separators: ``-$1,234.50``."""
    amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.{digits}f}"


def format_percent(value: Any, digits: int = 2) -> str:
    """Format a percentage that is already scaled to 100: ``7.25%``."""
    return f"{Decimal(str(value)):.{digits}f}%"


def serialize(obj: Any) -> Any:
    """Convert result objects into plain JSON-compatible values.

    Decimals become floats, dates ISO strings and enums their values. Payoff
    outcomes carry an ``amortizes`` flag so a client can tell a finished
    payoff from a loan whose payment never covers the interest.
    """
    if isinstance(obj, Enum):
        return obj.value
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, float):
        return obj
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, PaymentBreakdown):
        return [serialize(row) for row in breakdown_rows(obj)]
    if is_dataclass(obj):
        data = {f.name: serialize(getattr(obj, f.name)) for f in fields(obj)}
        if isinstance(obj, (AmortizationResult, NonAmortizing)):
            data["amortizes"] = obj.amortizes
        return data
    if isinstance(obj, dict):
        return {str(k): serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize(v) for v in obj]
    raise TypeError(f"Cannot serialize {type(obj).__name__}")


def schedule_rows(schedule: Iterable[ScheduleEntry]) -> list:
    """Schedule entries as dictionaries, as written by the exporters."""
    return [
        {
            "period": e.period,
            "date": e.date.strftime("%Y-%m"),
            "starting_balance": float(e.starting_balance),
            "payment": float(e.payment),
            "principal": float(e.principal_payment),
            "interest": float(e.interest_payment),
            "extra": float(e.extra_payment),
            "ending_balance": float(e.ending_balance),
        }
        for e in schedule
    ]


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Principal financed : {summary['principal_financed']:.2f}")
    print(f"Total interest     : {summary['total_interest']:.2f}")
    if summary.get("total_extra", 0):
        print(f"Total extra paid   : {summary['total_extra']:.2f}")
    print(f"Total cost         : {summary['total_cost']:.2f}")
    print(f"Original end date  : {summary['original_end_date']}")
    print(f"New end date       : {summary['new_end_date']}")
    print(f"Payments made      : {summary['payments_made']}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print the amortization schedule as a tab separated table."""
    headers = ["Period", "Date", "StartBal", "Payment", "Principal", "Interest", "Extra", "EndBal"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.period),
            entry.date.strftime("%Y-%m"),
            f"{entry.starting_balance:.2f}",
            f"{entry.payment:.2f}",
            f"{entry.principal_payment:.2f}",
            f"{entry.interest_payment:.2f}",
            f"{entry.extra_payment:.2f}",
            f"{entry.ending_balance:.2f}",
        ]
        print("\t".join(row))


def print_comparison(s1: Dict[str, object], s2: Dict[str, object]) -> None:
    """Print two loan summaries side by side.

    The difference column is scenario 2 minus scenario 1, so a negative
    value means the second scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    keys = ["monthly_payment", "total_cost", "total_interest", "payments_made"]
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key in keys:
        v1 = s1.get(key)
        v2 = s2.get(key)
        diff = v2 - v1
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print("=" * 72)


def describe_payoff(result: Any) -> str:
    if isinstance(result, NonAmortizing):
        return (
            f"does not amortize (payment {format_currency(result.payment)} "
            f"< interest {format_currency(result.first_month_interest)})"
        )
    return f"{result.months_to_payoff} months, interest {format_currency(result.total_interest_paid)}"


def _label(name: str) -> str:
    return name.replace("_", " ").capitalize()


def _format_value(name: str, value: Any) -> str:
    if value is None:
        return "n/a"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, DTILimit):
        return f"{value.front_end}% / {value.back_end}%"
    if isinstance(value, int):
        return str(value)
    if name in _RATIO_FIELDS:
        return format_percent(value * 100)
    if name.endswith("_pct") or name.endswith("_dti"):
        return format_percent(value)
    if name == "dscr":
        return f"{value:.2f}"
    if name == "recoup_months":
        return f"{value:.1f} months"
    return format_currency(value)


def print_result(title: str, result: Any) -> None:
    """Print every field of a calculator result as an aligned list."""
    print(title)
    print("-" * 72)
    for f in fields(result):
        if f.name in _HIDDEN_FIELDS:
            continue
        value = getattr(result, f.name)
        if isinstance(value, PaymentBreakdown):
            print("Monthly payment breakdown:")
            for name, amount in value.visible().items():
                print(f"  {name:30s} {format_currency(amount):>16s}")
        elif isinstance(value, PayoffComparison):
            print(f"{'Baseline payoff':32s} {describe_payoff(value.baseline)}")
            print(f"{'With extra payments':32s} {describe_payoff(value.accelerated)}")
            print(f"{'Months saved':32s} {value.months_saved}")
            print(f"{'Interest saved':32s} {format_currency(value.interest_saved)}")
        else:
            print(f"{_label(f.name):32s} {_format_value(f.name, value)}")
    print("-" * 72)
