"""
engine.py — Heuristic Valuation Engine

Purpose:
- Turn a company's four wizard records (financial, employee, technology,
  owner intent) into a valuation range, component risk scores and red flags.
- Pure computation: no storage access, no logging of business data, no I/O.

Algorithm:
1. Four raw estimates
       EBITDA multiple        = EBITDA × 4.5
       Revenue multiple       = current revenue × 2.0
       Discounted cash flow   = EBITDA × 5.0
       Asset based            = current revenue × 0.8
2. Median of the four (mean of the two middle values).
3. Range = median × {0.85, 1, 1.15}, rounded to whole currency units.
4. Scores
       financial health       = clamp(50 + net margin × 2, 20, 100)
       market position        = 48
       operational efficiency = 35, or 50 when transformation level > 3
       debt structure         = 72
       risk                   = round(mean of the four)
5. Red flags, in order: Declining Revenue, Low Profit Margin, Digital Transformation Lag.

Rounding is half-up toward +infinity on Decimal values, so 2.5 → 3 and -2.5 → -2.
Missing numeric inputs count as 0.

This module does NOT:
- Decide whether the inputs are complete (see workflow.py).
- Persist anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal
from typing import List, Optional

from app.schemas.records import (
    EmployeeRecord,
    FinancialRecord,
    OwnerIntentRecord,
    TechnologyRecord,
    ValuationCreate,
)

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

EBITDA_MULTIPLE = Decimal("4.5")
REVENUE_MULTIPLE = Decimal("2.0")
DCF_EBITDA_MULTIPLE = Decimal("5.0")
ASSET_REVENUE_MULTIPLE = Decimal("0.8")

RANGE_LOW = Decimal("0.85")
RANGE_HIGH = Decimal("1.15")

FINANCIAL_HEALTH_BASE = Decimal("50")
FINANCIAL_HEALTH_MARGIN_WEIGHT = Decimal("2")
FINANCIAL_HEALTH_FLOOR = Decimal("20")
FINANCIAL_HEALTH_CEILING = Decimal("100")

MARKET_POSITION_SCORE = 48
OPERATIONAL_EFFICIENCY_BASE = 35
OPERATIONAL_EFFICIENCY_TECH_BONUS = 15
DEBT_STRUCTURE_SCORE = 72

HIGH_TRANSFORMATION_LEVEL = 3  # strictly above → efficiency bonus
LAGGING_TRANSFORMATION_LEVEL = 3  # strictly below → red flag
LOW_MARGIN_THRESHOLD = Decimal("10")

FLAG_DECLINING_REVENUE = "Declining Revenue"
FLAG_LOW_MARGIN = "Low Profit Margin"
FLAG_DIGITAL_LAG = "Digital Transformation Lag"

_HALF = Decimal("0.5")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def round_half_up(value: Decimal) -> Decimal:
    """Round to an integer, ties toward +infinity."""
    return (value + _HALF).to_integral_value(rounding=ROUND_FLOOR)


def _number(value: Optional[Decimal]) -> Decimal:
    if value is None:
        return Decimal(0)
    value = Decimal(value)
    if not value.is_finite():
        raise ValueError(f"Non-finite numeric input: {value}")
    return value


def _median(values: List[Decimal]) -> Decimal:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def _clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return min(high, max(low, value))


# -----------------------------------------------------------------------------
# Result
# -----------------------------------------------------------------------------

@dataclass
class ValuationResult:
    valuation_min: Decimal
    valuation_median: Decimal
    valuation_max: Decimal
    ebitda_multiple: Decimal
    discounted_cash_flow: Decimal
    revenue_multiple: Decimal
    asset_based: Decimal
    risk_score: int
    financial_health_score: int
    market_position_score: int
    operational_efficiency_score: int
    debt_structure_score: int
    red_flags: List[str] = field(default_factory=list)

    def to_create(self, company_id: int) -> ValuationCreate:
        return ValuationCreate(
            company_id=company_id,
            valuation_min=self.valuation_min,
            valuation_median=self.valuation_median,
            valuation_max=self.valuation_max,
            ebitda_multiple=self.ebitda_multiple,
            discounted_cash_flow=self.discounted_cash_flow,
            revenue_multiple=self.revenue_multiple,
            asset_based=self.asset_based,
            risk_score=self.risk_score,
            financial_health_score=self.financial_health_score,
            market_position_score=self.market_position_score,
            operational_efficiency_score=self.operational_efficiency_score,
            debt_structure_score=self.debt_structure_score,
            red_flags=list(self.red_flags),
        )


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------

def compute_valuation(
    financial: FinancialRecord,
    employee: EmployeeRecord,
    technology: TechnologyRecord,
    owner_intent: OwnerIntentRecord,
) -> ValuationResult:
    """
    Compute a valuation from the four wizard records.

    `employee` and `owner_intent` are part of the contract but do not move any
    number today.

    Raises:
        ValueError: a numeric input is NaN or infinite.
    """
    ebitda = _number(financial.ebitda)
    revenue = _number(financial.revenue_current)
    net_margin = _number(financial.net_margin)
    transformation_level = technology.transformation_level or 0

    # Step 1–3: estimates and range
    ebitda_estimate = ebitda * EBITDA_MULTIPLE
    revenue_estimate = revenue * REVENUE_MULTIPLE
    dcf_estimate = ebitda * DCF_EBITDA_MULTIPLE
    asset_estimate = revenue * ASSET_REVENUE_MULTIPLE

    median = _median([ebitda_estimate, revenue_estimate, dcf_estimate, asset_estimate])

    # Step 4: scores
    financial_health = int(round_half_up(_clamp(
        FINANCIAL_HEALTH_BASE + net_margin * FINANCIAL_HEALTH_MARGIN_WEIGHT,
        FINANCIAL_HEALTH_FLOOR,
        FINANCIAL_HEALTH_CEILING,
    )))
    operational_efficiency = OPERATIONAL_EFFICIENCY_BASE
    if transformation_level > HIGH_TRANSFORMATION_LEVEL:
        operational_efficiency += OPERATIONAL_EFFICIENCY_TECH_BONUS

    components = [financial_health, MARKET_POSITION_SCORE, operational_efficiency, DEBT_STRUCTURE_SCORE]
    risk = int(round_half_up(Decimal(sum(components)) / len(components)))

    # Step 5: red flags
    red_flags: List[str] = []
    if (
        financial.revenue_current is not None
        and financial.revenue_previous is not None
        and revenue < _number(financial.revenue_previous)
    ):
        red_flags.append(FLAG_DECLINING_REVENUE)
    if financial.net_margin is not None and net_margin < LOW_MARGIN_THRESHOLD:
        red_flags.append(FLAG_LOW_MARGIN)
    if transformation_level < LAGGING_TRANSFORMATION_LEVEL:
        red_flags.append(FLAG_DIGITAL_LAG)

    return ValuationResult(
        valuation_min=round_half_up(median * RANGE_LOW),
        valuation_median=round_half_up(median),
        valuation_max=round_half_up(median * RANGE_HIGH),
        ebitda_multiple=round_half_up(ebitda_estimate),
        discounted_cash_flow=round_half_up(dcf_estimate),
        revenue_multiple=round_half_up(revenue_estimate),
        asset_based=round_half_up(asset_estimate),
        risk_score=risk,
        financial_health_score=financial_health,
        market_position_score=MARKET_POSITION_SCORE,
        operational_efficiency_score=operational_efficiency,
        debt_structure_score=DEBT_STRUCTURE_SCORE,
        red_flags=red_flags,
    )
