"""Build calculator inputs from loosely typed field mappings.

Both outer surfaces hand in ``{field_name: value}`` mappings: the web app
from JSON bodies or form posts, the CLI from command options. Values may be
strings, numbers or, for the tagged fields, small dictionaries. Fields that
are absent keep the calculator's default.

Two parsing modes exist. Lenient mode mirrors a calculator form: blank or
half-typed numbers count as zero. Strict mode is for the command line, where
a typo should be reported instead of silently becoming zero.
"""

from __future__ import annotations

from dataclasses import fields
from datetime import date
from decimal import Decimal
from typing import (
    Any,
    Dict,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .calculators import CalculatorInputs
from .data_models import AmountOrPercent, TermUnit, YearsOrMonths
from .utils import parse_amount, parse_year_month, to_decimal, to_number

T = TypeVar("T", bound=CalculatorInputs)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _number(value: Any, strict: bool) -> Decimal:
    if not strict:
        return to_number(value)
    if isinstance(value, str):
        return parse_amount(value)
    return to_decimal(value)


def _whole(name: str, value: Any, strict: bool) -> int:
    number = _number(value, strict)
    if number != number.to_integral_value():
        raise ValueError(f"{name} must be a whole number; got {value}")
    return int(number)


def _amount_or_percent(value: Any, strict: bool) -> AmountOrPercent:
    if isinstance(value, AmountOrPercent):
        return value
    if isinstance(value, Mapping):
        return AmountOrPercent(
            _number(value.get("value"), strict), bool(value.get("is_percent", False))
        )
    if isinstance(value, str):
        if strict:
            return AmountOrPercent.parse(value)
        text = value.strip()
        if text.endswith("%"):
            return AmountOrPercent.percent(to_number(text[:-1]))
        return AmountOrPercent.amount(to_number(text))
    return AmountOrPercent.amount(_number(value, strict))


def _years_or_months(value: Any, strict: bool) -> YearsOrMonths:
    if isinstance(value, YearsOrMonths):
        return value
    if isinstance(value, Mapping):
        unit = TermUnit(str(value.get("unit", TermUnit.YEARS.value)).lower())
        return YearsOrMonths(_whole("term", value.get("value"), strict), unit)
    if isinstance(value, str):
        return YearsOrMonths.parse(value)
    return YearsOrMonths.years(_whole("term", value, strict))


def parse_date(value: Any) -> date:
    """Parse ``YYYY-MM-DD`` or ``YYYY-MM`` (the first of that month)."""
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.count("-") >= 2:
        try:
            return date.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Invalid date: {value}") from exc
    return parse_year_month(text)


def _type_name(hint: Any) -> str:
    """Spell a resolved annotation as written, e.g. ``Optional[Decimal]``."""
    args = [a for a in get_args(hint) if a is not type(None)]
    if get_origin(hint) is Union and len(args) == 1:
        return f"Optional[{args[0].__name__}]"
    return getattr(hint, "__name__", str(hint))


def _convert(field_type: str, name: str, value: Any, strict: bool) -> Any:
    optional = field_type.startswith("Optional[")
    if optional and _is_blank(value):
        return None
    if field_type in ("Decimal", "Optional[Decimal]"):
        return _number(value, strict)
    if field_type == "int":
        return _whole(name, value, strict)
    if field_type == "AmountOrPercent":
        return _amount_or_percent(value, strict)
    if field_type == "YearsOrMonths":
        return _years_or_months(value, strict)
    if field_type in ("date", "Optional[date]"):
        return parse_date(value)
    # enums coerce themselves from their string value
    return str(value).strip().lower() if isinstance(value, str) else value


def inputs_from_mapping(
    inputs_type: Type[T], data: Optional[Mapping[str, Any]], strict: bool = False
) -> T:
    """Build ``inputs_type`` from ``data``.

    Raises ``ValueError`` for unknown field names and for values the inputs
    class rejects.
    """
    hints = get_type_hints(inputs_type)
    known = {f.name: _type_name(hints[f.name]) for f in fields(inputs_type)}
    values: Dict[str, Any] = {}
    for name, value in (data or {}).items():
        if name not in known:
            raise ValueError(f"Unknown field: {name}")
        if strict and _is_blank(value):
            continue
        try:
            values[name] = _convert(known[name], name, value, strict)
        except (ArithmeticError, TypeError) as exc:
            raise ValueError(f"Invalid value for {name}: {value!r}") from exc
    try:
        return inputs_type(**values)
    except TypeError as exc:
        raise ValueError(str(exc)) from exc


def field_names(inputs_type: Type[CalculatorInputs]) -> list:
    return [f.name for f in fields(inputs_type)]
