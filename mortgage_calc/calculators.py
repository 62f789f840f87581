"""Calculator variants built on the amortization engine.

Every calculator is a pure function from an inputs dataclass to a results
dataclass. The inputs carry the same defaults as the calculator forms and
reject negative amounts and non-positive terms when constructed; the
functions themselves never raise. Ratios whose denominator is zero are
reported as ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple, Type, get_type_hints

from .data_models import (
    AmortizationResult,
    AmountOrPercent,
    LoanTerms,
    LumpSumCadence,
    PaymentBreakdown,
    PaymentFrequency,
    PayoffComparison,
    PayoffStrategy,
    YearsOrMonths,
    require_non_negative,
)
from .engine import (
    balance_after_months,
    compare_payoff,
    monthly_payment,
    monthly_rate_from_annual,
    payment_for_terms,
    remaining_balance,
    total_interest_over_life,
)
from .programs import (
    DSCR_LOAN_TERM_YEARS,
    FHA_ANNUAL_MIP_PCT,
    FHA_UPFRONT_MIP_PCT,
    PMI_EQUITY_THRESHOLD_PCT,
    USDA_ANNUAL_FEE_PCT,
    USDA_GUARANTEE_FEE_PCT,
    DTILimit,
    Program,
    VARefinancePurpose,
    VAUse,
    dti_limit,
    va_purchase_funding_fee_pct,
    va_refinance_funding_fee_pct,
)
from .utils import add_months, months_between, to_decimal

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_TWELVE = Decimal("12")

_DECIMAL_FIELD_TYPES = (Decimal, Optional[Decimal])


class CostsHandling(str, Enum):
    """Whether refinance costs are rolled into the new loan or paid in cash."""

    ROLL = "roll"
    CASH = "cash"

    @classmethod
    def _missing_(cls, value):
        if value == "include":
            return cls.ROLL
        return None


def _pct(base: Decimal, percent: Decimal) -> Decimal:
    return base * percent / _HUNDRED


def _ratio(numerator: Decimal, denominator: Decimal) -> Optional[Decimal]:
    if denominator == 0:
        return None
    return numerator / denominator


@lru_cache(maxsize=None)
def _decimal_fields(inputs_type: type) -> Tuple[str, ...]:
    """Names of the ``Decimal`` and ``Optional[Decimal]`` fields of ``inputs_type``."""
    hints = get_type_hints(inputs_type)
    return tuple(f.name for f in fields(inputs_type) if hints[f.name] in _DECIMAL_FIELD_TYPES)


@dataclass(frozen=True)
class CalculatorInputs:
    """Base class converting ``Decimal`` fields and rejecting negative amounts."""

    def __post_init__(self) -> None:
        for name in _decimal_fields(type(self)):
            value = getattr(self, name)
            if value is None:
                continue
            value = to_decimal(value)
            require_non_negative(**{name: value})
            object.__setattr__(self, name, value)
        self.validate()

    def validate(self) -> None:
        """Calculator-specific range checks and enum coercion."""

    def _coerce(self, name: str, enum_type: Type[Enum]) -> None:
        object.__setattr__(self, name, enum_type(getattr(self, name)))

    def _require_at_most(self, name: str, limit: int) -> None:
        if getattr(self, name) > limit:
            raise ValueError(f"{name} must not exceed {limit}")


@dataclass(frozen=True)
class ExtraPaymentInputs(CalculatorInputs):
    """Inputs shared by every form with an early-payoff section."""

    extra_monthly: Decimal = Decimal("0")
    extra_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    lump_sum: Decimal = Decimal("0")
    lump_sum_cadence: LumpSumCadence = LumpSumCadence.ONCE
    first_payment_date: Optional[date] = None

    def validate(self) -> None:
        self._coerce("extra_frequency", PaymentFrequency)
        self._coerce("lump_sum_cadence", LumpSumCadence)

    @property
    def strategy(self) -> PayoffStrategy:
        return PayoffStrategy(
            extra_monthly_amount=self.extra_monthly,
            frequency=self.extra_frequency,
            lump_sum_amount=self.lump_sum,
            lump_sum_cadence=self.lump_sum_cadence,
        )


# ---------------------------------------------------------------------------
# Plain loan payoff
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoanPayoffInputs(ExtraPaymentInputs):
    principal: Decimal = Decimal("200000")
    annual_rate: Decimal = Decimal("5")
    term: YearsOrMonths = YearsOrMonths(30)

    @property
    def terms(self) -> LoanTerms:
        return LoanTerms(self.principal, self.annual_rate, self.term.months)


@dataclass(frozen=True)
class LoanPayoffResult:
    monthly_payment: Decimal
    term_months: int
    payoff: PayoffComparison
    payoff_date: Optional[date]


def _payoff_date(first_payment_date: Optional[date], result: object) -> Optional[date]:
    if first_payment_date is None or not isinstance(result, AmortizationResult):
        return None
    return add_months(first_payment_date, max(1, result.months_to_payoff) - 1)


def loan_payoff(inputs: LoanPayoffInputs) -> LoanPayoffResult:
    """How much sooner, and how much cheaper, extra payments retire a loan."""
    terms = inputs.terms
    payment = payment_for_terms(terms)
    payoff = compare_payoff(terms.principal, terms.monthly_rate, payment, inputs.strategy)
    return LoanPayoffResult(
        monthly_payment=payment,
        term_months=terms.term_months,
        payoff=payoff,
        payoff_date=_payoff_date(inputs.first_payment_date, payoff.accelerated),
    )


# ---------------------------------------------------------------------------
# Purchase and VA purchase
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PurchaseInputs(ExtraPaymentInputs):
    home_value: Decimal = Decimal("200000")
    down_payment: AmountOrPercent = AmountOrPercent(Decimal("0"))
    term: YearsOrMonths = YearsOrMonths(30)
    annual_rate: Decimal = Decimal("5")
    # yearly amounts, or a percent of the home value per year
    pmi: AmountOrPercent = AmountOrPercent(Decimal("0"))
    property_tax: AmountOrPercent = AmountOrPercent(Decimal("0.6"), True)
    insurance: AmountOrPercent = AmountOrPercent(Decimal("1200"))
    hoa_monthly: Decimal = Decimal("0")


@dataclass(frozen=True)
class VAPurchaseInputs(PurchaseInputs):
    va_use: VAUse = VAUse.FIRST

    def validate(self) -> None:
        super().validate()
        self._coerce("va_use", VAUse)
        if self.pmi.value != 0:
            raise ValueError("VA loans do not carry PMI")


@dataclass(frozen=True)
class PurchaseResult:
    down_payment: Decimal
    loan_amount: Decimal
    term_months: int
    monthly_principal_interest: Decimal
    monthly_tax: Decimal
    monthly_insurance: Decimal
    monthly_pmi: Decimal
    breakdown: PaymentBreakdown
    total_monthly: Decimal
    total_interest: Optional[Decimal]
    all_payments: Optional[Decimal]
    payoff: PayoffComparison
    payoff_date: Optional[date]


@dataclass(frozen=True)
class VAPurchaseResult(PurchaseResult):
    base_loan_amount: Decimal = _ZERO
    funding_fee_pct: Decimal = _ZERO
    funding_fee: Decimal = _ZERO


def _housing_costs(inputs: PurchaseInputs, loan_amount: Decimal, down_payment: Decimal) -> dict:
    n = inputs.term.months
    rate = monthly_rate_from_annual(inputs.annual_rate)
    monthly_pi = monthly_payment(loan_amount, inputs.annual_rate, n)
    monthly_tax = inputs.property_tax.resolve(inputs.home_value) / _TWELVE
    monthly_ins = inputs.insurance.resolve(inputs.home_value) / _TWELVE
    monthly_pmi = inputs.pmi.resolve(inputs.home_value) / _TWELVE

    breakdown = PaymentBreakdown.from_items(
        [
            ("Principal & Interest", monthly_pi),
            ("Taxes", monthly_tax),
            ("Insurance", monthly_ins),
            ("PMI", monthly_pmi),
            ("HOA Dues", inputs.hoa_monthly),
            ("Extra Payment", inputs.extra_monthly),
        ]
    )
    payoff = compare_payoff(loan_amount, rate, monthly_pi, inputs.strategy)

    total_interest = None
    all_payments = None
    if isinstance(payoff.baseline, AmortizationResult):
        total_interest = payoff.baseline.total_interest_paid
        add_ons = (monthly_tax + monthly_ins + monthly_pmi + inputs.hoa_monthly) * n
        all_payments = loan_amount + total_interest + add_ons

    return dict(
        down_payment=down_payment,
        loan_amount=loan_amount,
        term_months=n,
        monthly_principal_interest=monthly_pi,
        monthly_tax=monthly_tax,
        monthly_insurance=monthly_ins,
        monthly_pmi=monthly_pmi,
        breakdown=breakdown,
        total_monthly=breakdown.total,
        total_interest=total_interest,
        all_payments=all_payments,
        payoff=payoff,
        payoff_date=_payoff_date(inputs.first_payment_date, payoff.accelerated),
    )


def purchase(inputs: PurchaseInputs) -> PurchaseResult:
    """Monthly cost and early-payoff savings of a home purchase."""
    down_payment = inputs.down_payment.resolve(inputs.home_value)
    loan_amount = max(_ZERO, inputs.home_value - down_payment)
    return PurchaseResult(**_housing_costs(inputs, loan_amount, down_payment))


def va_purchase(inputs: VAPurchaseInputs) -> VAPurchaseResult:
    """Purchase with the VA funding fee financed into the loan."""
    down_payment = inputs.down_payment.resolve(inputs.home_value)
    base_loan = max(_ZERO, inputs.home_value - down_payment)
    down_pct = _ratio(down_payment * _HUNDRED, inputs.home_value) or _ZERO
    fee_pct = va_purchase_funding_fee_pct(inputs.va_use, down_pct)
    funding_fee = _pct(base_loan, fee_pct)
    final_loan = base_loan + funding_fee
    return VAPurchaseResult(
        **_housing_costs(inputs, final_loan, down_payment),
        base_loan_amount=base_loan,
        funding_fee_pct=fee_pct,
        funding_fee=funding_fee,
    )


# ---------------------------------------------------------------------------
# Refinance and VA refinance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefinanceInputs(CalculatorInputs):
    original_amount: Decimal = Decimal("300000")
    original_rate: Decimal = Decimal("5")
    original_term: YearsOrMonths = YearsOrMonths(30)
    original_start: date = date(2022, 3, 1)
    current_balance: Decimal = Decimal("250000")
    cash_out: Decimal = Decimal("0")
    refinance_costs: Decimal = Decimal("1000")
    new_rate: Decimal = Decimal("5")
    new_term: YearsOrMonths = YearsOrMonths(30)
    costs_handling: CostsHandling = CostsHandling.ROLL

    def validate(self) -> None:
        self._coerce("costs_handling", CostsHandling)


@dataclass(frozen=True)
class VARefinanceInputs(RefinanceInputs):
    cash_out: Decimal = Decimal("10000")
    new_rate: Decimal = Decimal("3")
    new_term: YearsOrMonths = YearsOrMonths(15)
    purpose: VARefinancePurpose = VARefinancePurpose.CASH_OUT
    va_use: VAUse = VAUse.FIRST
    # overrides the default fee for the purpose and use when set
    funding_fee_pct: Optional[Decimal] = None

    def validate(self) -> None:
        super().validate()
        self._coerce("purpose", VARefinancePurpose)
        self._coerce("va_use", VAUse)


@dataclass(frozen=True)
class RefinanceResult:
    months_paid: int
    months_remaining: int
    current_payment: Decimal
    estimated_remaining_balance: Decimal
    new_loan_amount: Decimal
    new_payment: Decimal
    monthly_difference: Decimal
    current_remaining_interest: Decimal
    new_loan_interest: Decimal
    interest_difference: Decimal
    recoup_months: Optional[Decimal]


@dataclass(frozen=True)
class VARefinanceResult(RefinanceResult):
    base_amount: Decimal = _ZERO
    cash_out_applied: Decimal = _ZERO
    funding_fee_pct: Decimal = _ZERO
    funding_fee: Decimal = _ZERO


def _recoup_months(inputs: RefinanceInputs, monthly_difference: Decimal) -> Optional[Decimal]:
    """Months of payment savings needed to earn back costs paid in cash."""
    savings = -monthly_difference
    if savings <= 0 or inputs.costs_handling is not CostsHandling.CASH:
        return None
    if inputs.refinance_costs <= 0:
        return None
    return inputs.refinance_costs / savings


def _refinance_math(inputs: RefinanceInputs, new_loan_amount: Decimal, as_of: date) -> dict:
    total_months = inputs.original_term.months
    months_paid = months_between(inputs.original_start, as_of)
    months_remaining = max(0, total_months - months_paid)
    old_rate = monthly_rate_from_annual(inputs.original_rate)
    new_months = inputs.new_term.months

    current_payment = monthly_payment(inputs.original_amount, inputs.original_rate, total_months)
    balance_now = balance_after_months(inputs.original_amount, old_rate, total_months, months_paid)
    new_payment = monthly_payment(new_loan_amount, inputs.new_rate, new_months)
    monthly_difference = new_payment - current_payment

    current_remaining_interest = total_interest_over_life(balance_now, old_rate, months_remaining)
    new_loan_interest = total_interest_over_life(
        new_loan_amount, monthly_rate_from_annual(inputs.new_rate), new_months
    )
    return dict(
        months_paid=months_paid,
        months_remaining=months_remaining,
        current_payment=current_payment,
        estimated_remaining_balance=balance_now,
        new_loan_amount=new_loan_amount,
        new_payment=new_payment,
        monthly_difference=monthly_difference,
        current_remaining_interest=current_remaining_interest,
        new_loan_interest=new_loan_interest,
        interest_difference=new_loan_interest - current_remaining_interest,
        recoup_months=_recoup_months(inputs, monthly_difference),
    )


def refinance(inputs: RefinanceInputs, as_of: Optional[date] = None) -> RefinanceResult:
    """Compare the current loan with a refinance, as of ``as_of`` (today by default)."""
    rolled_costs = inputs.refinance_costs if inputs.costs_handling is CostsHandling.ROLL else _ZERO
    new_loan_amount = inputs.current_balance + rolled_costs + inputs.cash_out
    return RefinanceResult(**_refinance_math(inputs, new_loan_amount, as_of or date.today()))


def va_refinance(inputs: VARefinanceInputs, as_of: Optional[date] = None) -> VARefinanceResult:
    """VA cash-out refinance or IRRRL with the funding fee financed.

    An IRRRL (interest rate reduction refinance) never pays cash out.
    """
    cash_out = _ZERO if inputs.purpose is VARefinancePurpose.IRRRL else inputs.cash_out
    rolled_costs = inputs.refinance_costs if inputs.costs_handling is CostsHandling.ROLL else _ZERO
    base_amount = inputs.current_balance + cash_out + rolled_costs
    fee_pct = inputs.funding_fee_pct
    if fee_pct is None:
        fee_pct = va_refinance_funding_fee_pct(inputs.purpose, inputs.va_use)
    funding_fee = _pct(base_amount, fee_pct)
    return VARefinanceResult(
        **_refinance_math(inputs, base_amount + funding_fee, as_of or date.today()),
        base_amount=base_amount,
        cash_out_applied=cash_out,
        funding_fee_pct=fee_pct,
        funding_fee=funding_fee,
    )


# ---------------------------------------------------------------------------
# Affordability
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AffordabilityInputs(CalculatorInputs):
    program: Program = Program.CONVENTIONAL
    gross_monthly_income: Decimal = Decimal("5000")
    monthly_debts: Decimal = Decimal("1500")
    home_price: Decimal = Decimal("200000")
    down_payment: AmountOrPercent = AmountOrPercent(Decimal("0"), True)
    term: YearsOrMonths = YearsOrMonths(30)
    annual_rate: Decimal = Decimal("5")
    property_tax: AmountOrPercent = AmountOrPercent(Decimal("0.6"), True)
    insurance: AmountOrPercent = AmountOrPercent(Decimal("1200"))
    pmi_yearly: Decimal = Decimal("3000")
    hoa_monthly: Decimal = Decimal("0")
    fha_upfront_mip_pct: Decimal = FHA_UPFRONT_MIP_PCT
    fha_annual_mip_pct: Decimal = FHA_ANNUAL_MIP_PCT
    va_use: VAUse = VAUse.FIRST
    # defaults to the purchase band for the down payment when unset
    va_funding_fee_pct: Optional[Decimal] = None

    def validate(self) -> None:
        self._coerce("program", Program)
        self._coerce("va_use", VAUse)


@dataclass(frozen=True)
class AffordabilityResult:
    program: Program
    down_payment: Decimal
    base_loan_amount: Decimal
    upfront_fee: Decimal
    loan_amount: Decimal
    monthly_principal_interest: Decimal
    monthly_tax: Decimal
    monthly_insurance: Decimal
    monthly_mortgage_insurance: Decimal
    breakdown: PaymentBreakdown
    total_monthly: Decimal
    front_end_dti: Optional[Decimal]
    back_end_dti: Optional[Decimal]
    dti_limit: DTILimit
    front_end_within_limit: bool
    back_end_within_limit: bool


def _upfront_fee(inputs: AffordabilityInputs, base_loan: Decimal, down_payment: Decimal) -> Decimal:
    if inputs.program is Program.FHA:
        return _pct(base_loan, inputs.fha_upfront_mip_pct)
    if inputs.program is Program.USDA:
        return _pct(base_loan, USDA_GUARANTEE_FEE_PCT)
    if inputs.program is Program.VA:
        if not inputs.va_use.pays_funding_fee:
            return _ZERO
        fee_pct = inputs.va_funding_fee_pct
        if fee_pct is None:
            down_pct = _ratio(down_payment * _HUNDRED, inputs.home_price) or _ZERO
            fee_pct = va_purchase_funding_fee_pct(inputs.va_use, down_pct)
        return _pct(base_loan, fee_pct)
    return _ZERO


def _monthly_mortgage_insurance(
    inputs: AffordabilityInputs, base_loan: Decimal, down_payment: Decimal
) -> Decimal:
    """PMI for conventional loans below 20 % down, MIP for FHA, annual fee for USDA."""
    if inputs.program is Program.CONVENTIONAL:
        if inputs.home_price > 0 and down_payment * _HUNDRED / inputs.home_price < PMI_EQUITY_THRESHOLD_PCT:
            return inputs.pmi_yearly / _TWELVE
        return _ZERO
    if inputs.program is Program.FHA:
        return _pct(base_loan, inputs.fha_annual_mip_pct) / _TWELVE
    if inputs.program is Program.USDA:
        return _pct(base_loan, USDA_ANNUAL_FEE_PCT) / _TWELVE
    return _ZERO


_INSURANCE_LABELS = {Program.CONVENTIONAL: "PMI", Program.FHA: "MIP", Program.USDA: "USDA MIP"}


def affordability(inputs: AffordabilityInputs) -> AffordabilityResult:
    """Total housing payment and debt-to-income ratios for a loan program."""
    down_payment = inputs.down_payment.resolve(inputs.home_price).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    base_loan = max(_ZERO, inputs.home_price - down_payment)
    upfront_fee = _upfront_fee(inputs, base_loan, down_payment)
    loan_amount = base_loan + upfront_fee

    monthly_pi = monthly_payment(loan_amount, inputs.annual_rate, inputs.term.months)
    monthly_tax = inputs.property_tax.resolve(inputs.home_price) / _TWELVE
    monthly_ins = inputs.insurance.resolve(inputs.home_price) / _TWELVE
    monthly_mi = _monthly_mortgage_insurance(inputs, base_loan, down_payment)

    items = [
        ("Principal & Interest", monthly_pi),
        ("Taxes", monthly_tax),
        ("Insurance", monthly_ins),
    ]
    if inputs.program in _INSURANCE_LABELS:
        items.append((_INSURANCE_LABELS[inputs.program], monthly_mi))
    items.append(("HOA Dues", inputs.hoa_monthly))
    breakdown = PaymentBreakdown.from_items(items)
    total = breakdown.total

    front_end = _ratio(total * _HUNDRED, inputs.gross_monthly_income)
    back_end = _ratio((total + inputs.monthly_debts) * _HUNDRED, inputs.gross_monthly_income)
    limit = dti_limit(inputs.program)
    return AffordabilityResult(
        program=inputs.program,
        down_payment=down_payment,
        base_loan_amount=base_loan,
        upfront_fee=upfront_fee,
        loan_amount=loan_amount,
        monthly_principal_interest=monthly_pi,
        monthly_tax=monthly_tax,
        monthly_insurance=monthly_ins,
        monthly_mortgage_insurance=monthly_mi,
        breakdown=breakdown,
        total_monthly=total,
        front_end_dti=front_end,
        back_end_dti=back_end,
        dti_limit=limit,
        front_end_within_limit=front_end is not None and front_end <= limit.front_end,
        back_end_within_limit=back_end is not None and back_end <= limit.back_end,
    )


# ---------------------------------------------------------------------------
# DSCR (rental investment)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DSCRInputs(CalculatorInputs):
    units: int = 1
    purchase_price: Decimal = Decimal("500000")
    unit_rent: Decimal = Decimal("2500")
    annual_taxes: Decimal = Decimal("4000")
    annual_insurance: Decimal = Decimal("3000")
    monthly_hoa: Decimal = Decimal("0")
    vacancy_pct: Decimal = Decimal("5")
    annual_repairs: Decimal = Decimal("500")
    annual_utilities: Decimal = Decimal("5000")
    ltv_pct: Decimal = Decimal("80")
    interest_pct: Decimal = Decimal("8")
    origination_pct: Decimal = Decimal("2")
    closing_costs: Decimal = Decimal("6500")

    def validate(self) -> None:
        if not 1 <= self.units <= 4:
            raise ValueError(f"units must be between 1 and 4; got {self.units}")
        self._require_at_most("ltv_pct", 100)
        self._require_at_most("vacancy_pct", 100)


@dataclass(frozen=True)
class DSCRResult:
    loan_amount: Decimal
    down_payment: Decimal
    monthly_principal_interest: Decimal
    annual_debt_service: Decimal
    monthly_escrowed_payment: Decimal
    gross_rent_annual: Decimal
    vacancy_expense: Decimal
    operating_expenses: Decimal
    net_operating_income: Decimal
    cash_flow_annual: Decimal
    cap_rate: Optional[Decimal]
    origination_fee: Decimal
    total_closing_costs: Decimal
    cash_needed_to_close: Decimal
    cash_on_cash: Optional[Decimal]
    dscr: Optional[Decimal]


def dscr(inputs: DSCRInputs) -> DSCRResult:
    """Rental cash flow and debt-service coverage of an investment property."""
    loan_amount = _pct(inputs.purchase_price, inputs.ltv_pct)
    down_payment = inputs.purchase_price - loan_amount
    pi = monthly_payment(loan_amount, inputs.interest_pct, DSCR_LOAN_TERM_YEARS * 12)
    annual_debt_service = pi * _TWELVE

    gross_rent = inputs.unit_rent * inputs.units * _TWELVE
    vacancy = _pct(gross_rent, inputs.vacancy_pct)
    operating = (
        inputs.annual_taxes
        + inputs.annual_insurance
        + inputs.monthly_hoa * _TWELVE
        + inputs.annual_repairs
        + inputs.annual_utilities
        + vacancy
    )
    noi = gross_rent - operating
    cash_flow = noi - annual_debt_service
    origination_fee = _pct(loan_amount, inputs.origination_pct)
    total_closing = inputs.closing_costs + origination_fee
    cash_to_close = down_payment + total_closing

    return DSCRResult(
        loan_amount=loan_amount,
        down_payment=down_payment,
        monthly_principal_interest=pi,
        annual_debt_service=annual_debt_service,
        monthly_escrowed_payment=pi + (inputs.annual_taxes + inputs.annual_insurance) / _TWELVE,
        gross_rent_annual=gross_rent,
        vacancy_expense=vacancy,
        operating_expenses=operating,
        net_operating_income=noi,
        cash_flow_annual=cash_flow,
        cap_rate=_ratio(noi, inputs.purchase_price),
        origination_fee=origination_fee,
        total_closing_costs=total_closing,
        cash_needed_to_close=cash_to_close,
        cash_on_cash=_ratio(cash_flow, cash_to_close),
        dscr=_ratio(noi, annual_debt_service),
    )


# ---------------------------------------------------------------------------
# Fix and flip
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FixFlipInputs(CalculatorInputs):
    purchase_price: Decimal = Decimal("500000")
    renovation_cost: Decimal = Decimal("75000")
    after_repair_value: Decimal = Decimal("750000")
    length_months: int = 9
    annual_taxes: Decimal = Decimal("4000")
    annual_insurance: Decimal = Decimal("3000")
    ltv_pct: Decimal = Decimal("80")
    interest_pct: Decimal = Decimal("10")
    origination_fee_pct: Decimal = Decimal("2")
    other_closing_pct: Decimal = Decimal("3")
    cost_to_sell_pct: Decimal = Decimal("5")

    def validate(self) -> None:
        if self.length_months <= 0:
            raise ValueError(f"length_months must be positive; got {self.length_months}")
        self._require_at_most("ltv_pct", 100)


@dataclass(frozen=True)
class FixFlipResult:
    loan_amount: Decimal
    down_payment: Decimal
    monthly_interest: Decimal
    carrying_costs: Decimal
    total_interest: Decimal
    origination_fee: Decimal
    other_closing_costs: Decimal
    closing_costs: Decimal
    borrower_equity_needed: Decimal
    cost_to_sell: Decimal
    total_cash_in_deal: Decimal
    net_profit: Decimal
    roi: Optional[Decimal]
    ltv_on_arv: Optional[Decimal]


def fix_flip(inputs: FixFlipInputs) -> FixFlipResult:
    """Profit of a fix-and-flip on an interest-only bridge loan.

    The lender finances the LTV share of the purchase price plus the whole
    renovation budget.
    """
    financed_purchase = _pct(inputs.purchase_price, inputs.ltv_pct)
    loan_amount = financed_purchase + inputs.renovation_cost
    down_payment = inputs.purchase_price - financed_purchase

    monthly_interest = _pct(loan_amount, inputs.interest_pct) / _TWELVE
    monthly_carry = monthly_interest + (inputs.annual_taxes + inputs.annual_insurance) / _TWELVE
    carrying_costs = monthly_carry * inputs.length_months

    origination_fee = _pct(loan_amount, inputs.origination_fee_pct)
    other_closing = _pct(inputs.purchase_price, inputs.other_closing_pct)
    closing_costs = origination_fee + other_closing
    equity_needed = down_payment + closing_costs
    cost_to_sell = _pct(inputs.after_repair_value, inputs.cost_to_sell_pct)
    cash_in_deal = equity_needed + carrying_costs

    net_profit = inputs.after_repair_value - (
        inputs.purchase_price + inputs.renovation_cost + closing_costs + carrying_costs + cost_to_sell
    )
    return FixFlipResult(
        loan_amount=loan_amount,
        down_payment=down_payment,
        monthly_interest=monthly_interest,
        carrying_costs=carrying_costs,
        total_interest=monthly_interest * inputs.length_months,
        origination_fee=origination_fee,
        other_closing_costs=other_closing,
        closing_costs=closing_costs,
        borrower_equity_needed=equity_needed,
        cost_to_sell=cost_to_sell,
        total_cash_in_deal=cash_in_deal,
        net_profit=net_profit,
        roi=_ratio(net_profit, cash_in_deal),
        ltv_on_arv=_ratio(loan_amount, inputs.after_repair_value),
    )


# ---------------------------------------------------------------------------
# Rent versus buy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RentVsBuyInputs(CalculatorInputs):
    home_price: Decimal = Decimal("500000")
    down_payment: AmountOrPercent = AmountOrPercent(Decimal("50000"))
    # replaces price minus down payment when set and positive
    loan_amount: Optional[Decimal] = Decimal("450000")
    annual_rate: Decimal = Decimal("7.5")
    term: YearsOrMonths = YearsOrMonths(30)
    pmi_yearly: Decimal = Decimal("0")
    insurance_yearly: Decimal = Decimal("0")
    tax_yearly: Decimal = Decimal("0")
    hoa_monthly: Decimal = Decimal("0")
    annual_costs_pct: Decimal = Decimal("1.0")
    selling_costs_pct: Decimal = Decimal("6.0")
    appreciation_pct: Decimal = Decimal("3.0")
    monthly_rent: Decimal = Decimal("2000")
    renters_insurance_monthly: Decimal = Decimal("1.3")
    rent_growth_pct: Decimal = Decimal("2.0")
    years: int = 8

    def validate(self) -> None:
        if not 1 <= self.years <= 40:
            raise ValueError(f"years must be between 1 and 40; got {self.years}")


@dataclass(frozen=True)
class RentVsBuyResult:
    down_payment: Decimal
    loan_amount: Decimal
    monthly_principal_interest: Decimal
    total_monthly_buy: Decimal
    months_elapsed: int
    balance_after_years: Decimal
    appreciated_value: Decimal
    equity: Decimal
    selling_costs: Decimal
    cash_spent_buying: Decimal
    cash_spent_renting: Decimal
    net_buy_position: Decimal
    net_rent_cost: Decimal
    buy_gain: Decimal
    rent_by_month: List[Decimal] = field(default_factory=list)


def rent_schedule(monthly_rent: Decimal, growth_pct: Decimal, months: int) -> List[Decimal]:
    """Rent for each month; it grows by ``growth_pct`` at the start of every year."""
    rents: List[Decimal] = []
    current = monthly_rent
    for month in range(months):
        if month > 0 and month % 12 == 0:
            current = current * (1 + growth_pct / _HUNDRED)
        rents.append(current)
    return rents


def rent_vs_buy(inputs: RentVsBuyInputs) -> RentVsBuyResult:
    """Equity built by buying versus cash spent renting over a horizon."""
    n = inputs.term.months
    down_payment = inputs.down_payment.resolve(inputs.home_price)
    loan_amount = max(_ZERO, inputs.home_price - down_payment)
    if inputs.loan_amount is not None and inputs.loan_amount > 0:
        loan_amount = inputs.loan_amount

    rate = monthly_rate_from_annual(inputs.annual_rate)
    monthly_pi = monthly_payment(loan_amount, inputs.annual_rate, n)
    total_monthly = (
        monthly_pi
        + (inputs.tax_yearly + inputs.insurance_yearly + inputs.pmi_yearly) / _TWELVE
        + inputs.hoa_monthly
    )

    months_elapsed = min(inputs.years * 12, n)
    balance = remaining_balance(loan_amount, rate, monthly_pi, months_elapsed)
    growth = (1 + inputs.appreciation_pct / _HUNDRED) ** inputs.years
    appreciated = (inputs.home_price * growth).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    equity = max(_ZERO, appreciated - balance)
    selling_costs = _pct(inputs.home_price, inputs.selling_costs_pct)

    cash_spent_buying = (
        total_monthly * months_elapsed
        + _pct(inputs.home_price, inputs.annual_costs_pct) * inputs.years
        + down_payment
    )
    rents = rent_schedule(inputs.monthly_rent, inputs.rent_growth_pct, months_elapsed)
    cash_spent_renting = sum(rents, _ZERO) + inputs.renters_insurance_monthly * months_elapsed

    net_buy = max(_ZERO, equity - selling_costs)
    net_rent = max(_ZERO, cash_spent_renting)
    return RentVsBuyResult(
        down_payment=down_payment,
        loan_amount=loan_amount,
        monthly_principal_interest=monthly_pi,
        total_monthly_buy=total_monthly,
        months_elapsed=months_elapsed,
        balance_after_years=balance,
        appreciated_value=appreciated,
        equity=equity,
        selling_costs=selling_costs,
        cash_spent_buying=cash_spent_buying,
        cash_spent_renting=cash_spent_renting,
        net_buy_position=net_buy,
        net_rent_cost=net_rent,
        buy_gain=net_buy - net_rent,
        rent_by_month=rents,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Calculator:
    id: str
    label: str
    inputs_type: Type[CalculatorInputs]
    run: Callable[..., object]


CALCULATORS: Dict[str, Calculator] = {
    c.id: c
    for c in (
        Calculator("affordability", "Affordability Calculator", AffordabilityInputs, affordability),
        Calculator("purchase", "Purchase", PurchaseInputs, purchase),
        Calculator("refinance", "Refinance", RefinanceInputs, refinance),
        Calculator("rent-vs-buy", "Rent vs Buy", RentVsBuyInputs, rent_vs_buy),
        Calculator("va-purchase", "VA Purchase", VAPurchaseInputs, va_purchase),
        Calculator("va-refinance", "VA Refinance", VARefinanceInputs, va_refinance),
        Calculator("dscr", "Debt-Service (DSCR)", DSCRInputs, dscr),
        Calculator("fix-flip", "Fix & Flip", FixFlipInputs, fix_flip),
    )
}
