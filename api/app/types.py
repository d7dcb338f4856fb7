"""GraphQL types for the total return pricing API."""

from __future__ import annotations

from datetime import date
from typing import Optional

import strawberry

from trspricing.products.price_index import QuotingConvention

Quoting = strawberry.enum(QuotingConvention, name="QuotingConvention")


# --- Input types (request payloads) ---


@strawberry.input
class CurveInput:
    """Curve definition: name, pillars (year fractions), zero rates (continuously compounded)."""

    name: str
    pillars: list[float]
    zero_rates_cc: list[float]
    t0: float = 0.0


@strawberry.input
class HazardCurveInput:
    """Hazard/survival curve with optional recovery and default information."""

    name: str
    pillars: list[float]
    hazard_rates: list[float]
    t0: float = 0.0
    recovery_rate: Optional[float] = None
    recovery_jump_date: Optional[date] = None
    default_date: Optional[date] = None


@strawberry.input
class MarketInput:
    """Market snapshot: valuation/settlement dates, curves and hazard curves."""

    as_of: date
    curves: list[CurveInput]
    settle: Optional[date] = None
    hazard_curves: Optional[list[HazardCurveInput]] = None


@strawberry.input
class AmortizationInput:
    """Scheduled repayment as a fraction of original face."""

    pay_date: date
    amount: float


@strawberry.input
class BondInput:
    """Fixed-coupon bond underlying the return leg."""

    effective: date
    maturity: date
    coupon: float
    frequency: int = 2
    notional: float = 1.0
    ccy: str = "USD"
    ex_div_days: int = 0
    amortizations: Optional[list[AmortizationInput]] = None
    description: str = ""


@strawberry.input
class PriceObservationInput:
    """Historical price of the asset on a date."""

    observation_date: date
    price: float


@strawberry.input
class PriceIndexInput:
    """Asset price index: quoting convention, settlement lag and history."""

    name: str
    quoting: Quoting = QuotingConvention.FULL_PRICE
    settlement_days: int = 0
    observations: Optional[list[PriceObservationInput]] = None


@strawberry.input
class BondReturnLegInput:
    """Total return leg on a bond. initial_price omitted => implied at effective."""

    bond: BondInput
    effective: date
    maturity: date
    discount_curve: str
    initial_price: Optional[float] = None
    value_dates: Optional[list[date]] = None
    payment_lag: int = 0
    resetting_notional: bool = False
    projection_curve: Optional[str] = None
    survival_curve: Optional[str] = None
    notional: float = 1.0
    price_index: Optional[PriceIndexInput] = None


# --- Output types (response payloads) ---


@strawberry.type
class RiskMeasures:
    """Risk measures: PV01 (parallel curve bump), CS01 (hazard bump)."""

    pv01: Optional[float] = None
    cs01: Optional[float] = None


@strawberry.type
class ReturnLegResult:
    """Return leg valuation: PV plus position analytics and optional risk."""

    npv: float
    accrued: float
    unrealized_gain: float
    initial_price: float
    bond_notional: float
    risk_measures: Optional[RiskMeasures] = None
