"""Core calculation engine for the mortgage calculators.

This module implements the amortization primitives shared by every
calculator: the fixed monthly payment of a fully amortizing loan, the
remaining balance after a number of payments, the total interest over a
loan's life and a month-by-month payoff simulation supporting extra
recurring payments and lump sums. The simulation is also exposed as a full
schedule of ``ScheduleEntry`` rows.

All functions are total: nonsensical input (a zero term, a non-positive
principal) yields zero rather than an exception, and a payment too small to
cover interest yields a ``NonAmortizing`` result instead of an endless loop.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, Overflow, getcontext
from typing import Iterator, List, Optional, Tuple, Union

from loguru import logger

from .data_models import (
    MAX_SIMULATED_MONTHS,
    AmortizationResult,
    LoanTerms,
    NonAmortizing,
    PayoffComparison,
    PayoffStrategy,
    ScheduleEntry,
)
from .utils import Number, add_months, to_decimal

getcontext().prec = 28  # increase precision for financial calculations

_ZERO = Decimal("0")
_HALF_CENT = Decimal("0.005")

PayoffResult = Union[AmortizationResult, NonAmortizing]


def monthly_rate_from_annual(annual_rate_percent: Number) -> Decimal:
    """Convert an annual percentage rate (``7.5``) to a monthly decimal rate."""
    return to_decimal(annual_rate_percent) / Decimal(100) / Decimal(12)


def _annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``. For a term so long that ``(1 + i)^n``
    overflows, the payment is its limit ``P * i``.
    """
    if principal <= 0 or term <= 0:
        return _ZERO
    if rate_per_month == 0:
        return principal / Decimal(term)
    try:
        factor = (1 + rate_per_month) ** term
        return principal * (rate_per_month * factor) / (factor - 1)
    except Overflow:
        return principal * rate_per_month


def monthly_payment(principal: Number, annual_rate_percent: Number, term_months: int) -> Decimal:
    """Fixed monthly principal-and-interest payment of a fully amortizing loan.

    Returns 0 when ``principal`` or ``term_months`` is not positive; a zero
    rate degrades to straight-line ``principal / term_months``.
    """
    return _annuity_payment(
        to_decimal(principal), monthly_rate_from_annual(annual_rate_percent), int(term_months)
    )


def payment_for_terms(terms: LoanTerms) -> Decimal:
    return _annuity_payment(terms.principal, terms.monthly_rate, terms.term_months)


def _balance_limit(principal: Decimal, rate: Decimal, payment: Decimal) -> Decimal:
    interest = principal * rate
    if payment > interest:
        return _ZERO
    if payment == interest:
        return principal
    return Decimal("Infinity")


def remaining_balance(
    principal: Number, monthly_rate: Number, payment: Number, months_elapsed: int
) -> Decimal:
    """Balance left after ``months_elapsed`` payments of ``payment``.

    Uses the closed form

        B_k = P * (1 + r)^k - payment * ((1 + r)^k - 1) / r

    and clamps the result at zero. A payment that does not cover the interest
    makes the balance grow, which this function reports faithfully (as
    ``Infinity`` once the growth overflows); use ``simulate_amortization`` to
    detect that case.
    """
    principal = to_decimal(principal)
    rate = to_decimal(monthly_rate)
    payment = to_decimal(payment)
    k = max(0, int(months_elapsed))
    if rate == 0:
        return max(_ZERO, principal - payment * k)
    try:
        growth = (1 + rate) ** k
        balance = principal * growth - payment * ((growth - 1) / rate)
    except Overflow:
        return _balance_limit(principal, rate, payment)
    return max(_ZERO, balance)


def balance_after_months(
    principal: Number, monthly_rate: Number, term_months: int, months_elapsed: int
) -> Decimal:
    """Balance of a loan paid exactly on its own schedule after ``months_elapsed``."""
    principal = to_decimal(principal)
    if principal <= 0 or term_months <= 0:
        return _ZERO
    if months_elapsed <= 0:
        return principal
    if months_elapsed >= term_months:
        return _ZERO
    rate = to_decimal(monthly_rate)
    payment = _annuity_payment(principal, rate, int(term_months))
    return remaining_balance(principal, rate, payment, months_elapsed)


def total_interest_over_life(principal: Number, monthly_rate: Number, term_months: int) -> Decimal:
    """Interest paid over ``term_months`` scheduled payments: ``payment * n - principal``."""
    principal = to_decimal(principal)
    if principal <= 0 or term_months <= 0:
        return _ZERO
    payment = _annuity_payment(principal, to_decimal(monthly_rate), int(term_months))
    return payment * Decimal(int(term_months)) - principal


def _payoff_months(
    principal: Decimal, rate: Decimal, payment: Decimal, strategy: PayoffStrategy
) -> Iterator[Tuple[int, Decimal, Decimal, Decimal, Decimal]]:
    """Yield ``(month_index, start, interest, extra, end)`` until the balance is zero.

    Stops after ``MAX_SIMULATED_MONTHS`` iterations regardless. The caller is
    responsible for rejecting non-amortizing payments first.
    """
    balance = principal
    month = 0
    while balance > 0 and month < MAX_SIMULATED_MONTHS:
        interest = balance * rate
        extra = strategy.extra_for_month(month)
        principal_portion = payment - interest + extra
        ending = max(_ZERO, balance - principal_portion)
        # Treat anything under half a cent as paid off to avoid a phantom
        # extra period caused by rounding residue.
        if ending < _HALF_CENT:
            ending = _ZERO
        yield month, balance, interest, extra, ending
        balance = ending
        month += 1


def _check_amortizes(principal: Decimal, rate: Decimal, payment: Decimal) -> Optional[NonAmortizing]:
    first_interest = principal * rate
    if payment <= first_interest:
        logger.debug(
            "Payment {} does not cover first month interest {}; loan does not amortize",
            payment,
            first_interest,
        )
        return NonAmortizing(payment=payment, first_month_interest=first_interest)
    return None


def simulate_amortization(
    principal: Number,
    monthly_rate: Number,
    base_payment: Number,
    strategy: Optional[PayoffStrategy] = None,
) -> PayoffResult:
    """Run the loan month by month until the balance reaches zero.

    Each month the interest on the current balance is accrued, the scheduled
    payment minus that interest goes to principal, and the strategy's extra
    recurring payment (scaled by its frequency factor) plus any lump sum due
    that month is added on top.

    Returns
    -------
    AmortizationResult
        Months until payoff and cumulative interest. The month count is
        capped at ``MAX_SIMULATED_MONTHS``.
    NonAmortizing
        When ``base_payment`` does not cover the first month's interest.
    """
    principal = to_decimal(principal)
    rate = to_decimal(monthly_rate)
    payment = to_decimal(base_payment)
    strategy = strategy or PayoffStrategy.baseline()
    if principal <= 0:
        return AmortizationResult(months_to_payoff=0, total_interest_paid=_ZERO)
    rejected = _check_amortizes(principal, rate, payment)
    if rejected is not None:
        return rejected

    months = 0
    interest_paid = _ZERO
    for _, _, interest, _, _ in _payoff_months(principal, rate, payment, strategy):
        interest_paid += interest
        months += 1
    return AmortizationResult(months_to_payoff=months, total_interest_paid=interest_paid)


def compare_payoff(
    principal: Number,
    monthly_rate: Number,
    base_payment: Number,
    strategy: PayoffStrategy,
) -> PayoffComparison:
    """Simulate the baseline and ``strategy`` and report what the extras save.

    Savings are clamped at zero and reported as zero whenever either run
    does not amortize.
    """
    baseline = simulate_amortization(principal, monthly_rate, base_payment)
    accelerated = simulate_amortization(principal, monthly_rate, base_payment, strategy)
    months_saved = 0
    interest_saved = _ZERO
    if isinstance(baseline, AmortizationResult) and isinstance(accelerated, AmortizationResult):
        months_saved = max(0, baseline.months_to_payoff - accelerated.months_to_payoff)
        interest_saved = max(_ZERO, baseline.total_interest_paid - accelerated.total_interest_paid)
    return PayoffComparison(
        baseline=baseline,
        accelerated=accelerated,
        months_saved=months_saved,
        interest_saved=interest_saved,
    )


def amortization_schedule(
    principal: Number,
    annual_rate_percent: Number,
    term_months: int,
    start_date: date,
    strategy: Optional[PayoffStrategy] = None,
) -> List[ScheduleEntry]:
    """Compute the month-by-month schedule of a loan.

    Parameters
    ----------
    principal, annual_rate_percent, term_months:
        The loan; the scheduled payment is ``monthly_payment`` of these.
    start_date: date
        Date of the first payment. Later payments fall on the same day of
        each following month.
    strategy: PayoffStrategy
        Optional extra payments. Without one the schedule runs the full term.

    Returns
    -------
    List[ScheduleEntry]
        One entry per month until the balance reaches zero; empty when the
        loan does not amortize.
    """
    principal = to_decimal(principal)
    rate = monthly_rate_from_annual(annual_rate_percent)
    payment = _annuity_payment(principal, rate, int(term_months))
    strategy = strategy or PayoffStrategy.baseline()
    if principal <= 0 or _check_amortizes(principal, rate, payment) is not None:
        return []

    schedule: List[ScheduleEntry] = []
    for month, starting, interest, _, ending in _payoff_months(principal, rate, payment, strategy):
        principal_payment = starting - ending
        # The final month only pays what is left.
        paid = interest + principal_payment
        schedule.append(
            ScheduleEntry(
                period=month + 1,
                date=add_months(start_date, month),
                starting_balance=starting,
                payment=min(payment, paid),
                principal_payment=principal_payment,
                interest_payment=interest,
                extra_payment=max(_ZERO, paid - payment),
                ending_balance=ending,
            )
        )
    return schedule


def schedule_summary(schedule: List[ScheduleEntry], term_months: int, start_date: date) -> dict:
    """Aggregate metrics of a schedule: totals and original versus new end date."""
    total_interest = sum((e.interest_payment for e in schedule), _ZERO)
    total_extra = sum((e.extra_payment for e in schedule), _ZERO)
    total_principal = sum((e.principal_payment for e in schedule), _ZERO)
    original_end = add_months(start_date, term_months - 1)
    new_end = schedule[-1].date if schedule else start_date
    return {
        "principal_financed": float(total_principal),
        "total_interest": float(total_interest),
        "total_extra": float(total_extra),
        "total_cost": float(total_principal + total_interest),
        "term_months": term_months,
        "original_end_date": original_end.strftime("%Y-%m"),
        "new_end_date": new_end.strftime("%Y-%m"),
        "payments_made": len(schedule),
    }
