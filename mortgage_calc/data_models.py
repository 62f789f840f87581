"""Data models for the mortgage calculators.

This module defines the value objects passed in and out of the amortization
engine: loan terms, payoff strategies, the two possible outcomes of a payoff
simulation, payment breakdowns and schedule rows. It also defines the small
tagged unions (``AmountOrPercent``, ``YearsOrMonths``) that stand in for the
``$``/``%`` and year/month toggles of a calculator form. Every bundle is
frozen: a recalculation builds new objects instead of mutating old ones.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Mapping, Tuple

from .utils import Number, parse_amount, to_decimal

MAX_SIMULATED_MONTHS = 3600  # 300 years


def require_non_negative(**values: Decimal) -> None:
    """Reject negative or non-finite amounts with ``ValueError``."""
    for name, value in values.items():
        if not value.is_finite():
            raise ValueError(f"{name} must be a finite number")
        if value < 0:
            raise ValueError(f"{name} must not be negative; got {value}")


class LumpSumCadence(str, Enum):
    """How often a lump-sum payment is applied to the principal."""

    ONCE = "once"
    YEARLY = "yearly"
    QUARTERLY = "quarterly"

    def applies(self, month_index: int) -> bool:
        """Return True when the lump sum lands in the zero-based ``month_index``.

        ``once`` only hits the first month; ``yearly`` hits calendar months
        1, 13, 25, ...; ``quarterly`` hits months 1, 4, 7, ...
        """
        if self is LumpSumCadence.ONCE:
            return month_index == 0
        if self is LumpSumCadence.YEARLY:
            return (month_index + 1) % 12 == 1
        return (month_index + 1) % 3 == 1


class PaymentFrequency(str, Enum):
    """Cadence of an extra recurring payment."""

    MONTHLY = "monthly"
    BIWEEKLY = "biweekly"
    WEEKLY = "weekly"

    @property
    def factor(self) -> Decimal:
        """Monthly equivalent of one payment at this frequency."""
        if self is PaymentFrequency.BIWEEKLY:
            return Decimal(26) / Decimal(12)
        if self is PaymentFrequency.WEEKLY:
            return Decimal(52) / Decimal(12)
        return Decimal(1)


class TermUnit(str, Enum):
    YEARS = "years"
    MONTHS = "months"


@dataclass(frozen=True)
class AmountOrPercent:
    """A dollar amount or a percentage of some base value.

    Attributes
    ----------
    value: Decimal
        The amount in dollars, or the percentage (``20`` meaning 20 %).
    is_percent: bool
        Whether ``value`` is a percentage of the base passed to ``resolve``.
    """

    value: Decimal
    is_percent: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", to_decimal(self.value))
        require_non_negative(value=self.value)

    @classmethod
    def amount(cls, value: Number) -> "AmountOrPercent":
        return cls(to_decimal(value), False)

    @classmethod
    def percent(cls, value: Number) -> "AmountOrPercent":
        return cls(to_decimal(value), True)

    @classmethod
    def parse(cls, text: str) -> "AmountOrPercent":
        """Parse ``"20%"`` as a percentage and anything else as an amount."""
        text = text.strip()
        if text.endswith("%"):
            return cls.percent(parse_amount(text[:-1]))
        return cls.amount(parse_amount(text))

    def resolve(self, base: Decimal) -> Decimal:
        """Return the dollar value, using ``base`` for percentages."""
        if self.is_percent:
            return to_decimal(base) * self.value / Decimal(100)
        return self.value


@dataclass(frozen=True)
class YearsOrMonths:
    """A loan term entered either in years or in months."""

    value: int
    unit: TermUnit = TermUnit.YEARS

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit", TermUnit(self.unit))
        if int(self.value) != self.value:
            raise ValueError(f"Term must be a whole number; got {self.value}")
        object.__setattr__(self, "value", int(self.value))
        if self.value <= 0:
            raise ValueError(f"Term must be positive; got {self.value}")
        if self.months > MAX_SIMULATED_MONTHS:
            raise ValueError(f"Term must not exceed {MAX_SIMULATED_MONTHS} months; got {self.months}")

    @classmethod
    def years(cls, value: int) -> "YearsOrMonths":
        return cls(value, TermUnit.YEARS)

    @classmethod
    def of_months(cls, value: int) -> "YearsOrMonths":
        return cls(value, TermUnit.MONTHS)

    @classmethod
    def parse(cls, text: str) -> "YearsOrMonths":
        """Parse ``"30y"``, ``"360m"`` or a bare number of years."""
        raw = text.strip().lower()
        unit = TermUnit.YEARS
        if raw.endswith("m"):
            unit = TermUnit.MONTHS
            raw = raw[:-1]
        elif raw.endswith("y"):
            raw = raw[:-1]
        try:
            value = int(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid loan term: {text}") from exc
        return cls(value, unit)

    @property
    def months(self) -> int:
        if self.unit is TermUnit.YEARS:
            return self.value * 12
        return self.value


@dataclass(frozen=True)
class LoanTerms:
    """Principal, annual rate in percent and term in months of a fixed-rate loan."""

    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "principal", to_decimal(self.principal))
        object.__setattr__(self, "annual_rate_percent", to_decimal(self.annual_rate_percent))
        require_non_negative(
            principal=self.principal, annual_rate_percent=self.annual_rate_percent
        )
        if int(self.term_months) != self.term_months or self.term_months <= 0:
            raise ValueError(f"Term must be a positive number of months; got {self.term_months}")
        if self.term_months > MAX_SIMULATED_MONTHS:
            raise ValueError(f"Term must not exceed {MAX_SIMULATED_MONTHS} months; got {self.term_months}")
        object.__setattr__(self, "term_months", int(self.term_months))

    @property
    def monthly_rate(self) -> Decimal:
        return self.annual_rate_percent / Decimal(100) / Decimal(12)


@dataclass(frozen=True)
class PayoffStrategy:
    """Extra payments applied on top of the scheduled payment.

    Attributes
    ----------
    extra_monthly_amount: Decimal
        Extra amount paid at every payment of ``frequency``.
    frequency: PaymentFrequency
        Scales the extra amount to a monthly equivalent (bi-weekly pays 26
        times a year, weekly 52 times).
    lump_sum_amount: Decimal
        A lump sum applied to the principal on ``lump_sum_cadence``.
    lump_sum_cadence: LumpSumCadence
        When the lump sum lands.
    """

    extra_monthly_amount: Decimal = Decimal("0")
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    lump_sum_amount: Decimal = Decimal("0")
    lump_sum_cadence: LumpSumCadence = LumpSumCadence.ONCE

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra_monthly_amount", to_decimal(self.extra_monthly_amount))
        object.__setattr__(self, "lump_sum_amount", to_decimal(self.lump_sum_amount))
        object.__setattr__(self, "frequency", PaymentFrequency(self.frequency))
        object.__setattr__(self, "lump_sum_cadence", LumpSumCadence(self.lump_sum_cadence))
        require_non_negative(
            extra_monthly_amount=self.extra_monthly_amount,
            lump_sum_amount=self.lump_sum_amount,
        )

    @classmethod
    def baseline(cls) -> "PayoffStrategy":
        """A strategy with no extra payments at all."""
        return cls()

    @property
    def frequency_factor(self) -> Decimal:
        return self.frequency.factor

    @property
    def is_baseline(self) -> bool:
        return self.extra_monthly_amount == 0 and self.lump_sum_amount == 0

    def extra_for_month(self, month_index: int) -> Decimal:
        """Total extra principal paid in the zero-based ``month_index``."""
        extra = self.extra_monthly_amount * self.frequency_factor
        if self.lump_sum_amount > 0 and self.lump_sum_cadence.applies(month_index):
            extra += self.lump_sum_amount
        return extra


@dataclass(frozen=True)
class AmortizationResult:
    """Months until the balance reaches zero and the interest paid on the way.

    ``months_to_payoff`` equals ``MAX_SIMULATED_MONTHS`` when the simulation
    hit the safety cap before the balance reached zero.
    """

    months_to_payoff: int
    total_interest_paid: Decimal

    @property
    def amortizes(self) -> bool:
        return True


@dataclass(frozen=True)
class NonAmortizing:
    """The payment does not cover the first month's interest.

    The balance would never fall, so no payoff date or interest total exists.
    """

    payment: Decimal
    first_month_interest: Decimal
    months_to_payoff: int = MAX_SIMULATED_MONTHS

    @property
    def amortizes(self) -> bool:
        return False

    @property
    def shortfall(self) -> Decimal:
        """How much more the payment needs just to cover interest."""
        return self.first_month_interest - self.payment


@dataclass(frozen=True)
class PayoffComparison:
    """Baseline schedule versus a schedule with extra payments."""

    baseline: "AmortizationResult | NonAmortizing"
    accelerated: "AmortizationResult | NonAmortizing"
    months_saved: int
    interest_saved: Decimal


@dataclass(frozen=True)
class PaymentBreakdown:
    """Monthly payment split into named categories, in display order."""

    categories: Tuple[Tuple[str, Decimal], ...] = ()

    @classmethod
    def from_items(cls, items: Iterable[Tuple[str, Number]]) -> "PaymentBreakdown":
        return cls(tuple((name, to_decimal(amount)) for name, amount in items))

    def visible(self) -> "OrderedDict[str, Decimal]":
        """Categories with a positive amount; zero rows are not displayed."""
        return OrderedDict((name, amount) for name, amount in self.categories if amount > 0)

    @property
    def total(self) -> Decimal:
        return sum(self.visible().values(), Decimal("0"))

    def __getitem__(self, name: str) -> Decimal:
        for key, amount in self.categories:
            if key == name:
                return amount
        raise KeyError(name)


@dataclass(frozen=True)
class ScheduleEntry:
    """An entry in the amortization schedule.

    Each entry corresponds to one month. ``extra_payment`` holds the extra
    recurring amount plus any lump sum landing in that month.
    """

    period: int
    date: date
    starting_balance: Decimal
    payment: Decimal
    principal_payment: Decimal
    interest_payment: Decimal
    extra_payment: Decimal
    ending_balance: Decimal


def breakdown_rows(breakdown: PaymentBreakdown) -> List[Mapping[str, object]]:
    """Rows of ``{"name", "value"}`` for charting the visible categories."""
    return [{"name": name, "value": amount} for name, amount in breakdown.visible().items()]


@dataclass(frozen=True)
class Scenario:
    """A named set of loan terms, used when comparing two loans."""

    name: str
    terms: LoanTerms
    strategy: PayoffStrategy = field(default_factory=PayoffStrategy)
