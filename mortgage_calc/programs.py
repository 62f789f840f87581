"""Loan program constants: funding fees, mortgage insurance and DTI caps.

The percentages below follow the agency schedules in effect when the
calculators were built. They are plain module-level tables so a caller can
pass a different table to the lookup helpers instead of editing the module.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Mapping, Optional


class Program(str, Enum):
    CONVENTIONAL = "conventional"
    FHA = "fha"
    VA = "va"
    USDA = "usda"
    JUMBO = "jumbo"


class VAUse(str, Enum):
    """Which use of the VA loan benefit this is."""

    FIRST = "first"
    SUBSEQUENT = "subsequent"
    EXEMPT = "exempt"
    WAIVED = "waived"

    @classmethod
    def _missing_(cls, value):
        if value == "repeat":
            return cls.SUBSEQUENT
        return None

    @property
    def pays_funding_fee(self) -> bool:
        return self not in (VAUse.EXEMPT, VAUse.WAIVED)


class VARefinancePurpose(str, Enum):
    CASH_OUT = "cashout"
    IRRRL = "irrrl"


@dataclass(frozen=True)
class DTILimit:
    """Maximum front-end and back-end debt-to-income ratios, in percent."""

    front_end: Decimal
    back_end: Decimal


# percent of the base loan, keyed by use then by minimum down payment percent
VA_PURCHASE_FUNDING_FEES: Dict[VAUse, Dict[int, Decimal]] = {
    VAUse.FIRST: {10: Decimal("1.25"), 5: Decimal("1.5"), 0: Decimal("2.15")},
    VAUse.SUBSEQUENT: {10: Decimal("1.25"), 5: Decimal("1.5"), 0: Decimal("3.3")},
}

VA_CASH_OUT_FUNDING_FEES: Dict[VAUse, Decimal] = {
    VAUse.FIRST: Decimal("2.15"),
    VAUse.SUBSEQUENT: Decimal("3.3"),
}
VA_IRRRL_FUNDING_FEE = Decimal("0.5")

FHA_UPFRONT_MIP_PCT = Decimal("1.75")
FHA_ANNUAL_MIP_PCT = Decimal("0.55")

USDA_GUARANTEE_FEE_PCT = Decimal("1.0")
USDA_ANNUAL_FEE_PCT = Decimal("0.35")

# conventional loans carry PMI below this down payment share of the price
PMI_EQUITY_THRESHOLD_PCT = Decimal("20")

DSCR_LOAN_TERM_YEARS = 30

PROGRAM_DTI_LIMITS: Dict[Program, DTILimit] = {
    Program.CONVENTIONAL: DTILimit(Decimal("50"), Decimal("50")),
    Program.FHA: DTILimit(Decimal("57"), Decimal("57")),
    Program.VA: DTILimit(Decimal("65"), Decimal("65")),
    Program.USDA: DTILimit(Decimal("29"), Decimal("41")),
    Program.JUMBO: DTILimit(Decimal("43"), Decimal("43")),
}


def va_purchase_funding_fee_pct(
    use: VAUse,
    down_payment_pct: Decimal,
    table: Optional[Mapping[VAUse, Mapping[int, Decimal]]] = None,
) -> Decimal:
    """Funding fee percent for a VA purchase loan.

    The fee drops as the down payment grows: the band is the highest
    threshold not exceeding ``down_payment_pct``.
    """
    use = VAUse(use)
    if not use.pays_funding_fee:
        return Decimal("0")
    bands = (table or VA_PURCHASE_FUNDING_FEES)[use]
    for threshold in sorted(bands, reverse=True):
        if down_payment_pct >= threshold:
            return bands[threshold]
    return bands[min(bands)]


def va_refinance_funding_fee_pct(
    purpose: VARefinancePurpose,
    use: VAUse,
    cash_out_table: Optional[Mapping[VAUse, Decimal]] = None,
) -> Decimal:
    """Default funding fee percent for a VA refinance."""
    use = VAUse(use)
    if not use.pays_funding_fee:
        return Decimal("0")
    if VARefinancePurpose(purpose) is VARefinancePurpose.IRRRL:
        return VA_IRRRL_FUNDING_FEE
    return (cash_out_table or VA_CASH_OUT_FUNDING_FEES)[use]


def dti_limit(program: Program, limits: Optional[Mapping[Program, DTILimit]] = None) -> DTILimit:
    return (limits or PROGRAM_DTI_LIMITS)[Program(program)]
