"""Service layer: convert GraphQL inputs to pricing library objects and run pricing/risk."""

from __future__ import annotations

import logging
import math
from typing import Optional

from trspricing.curves import HazardRateCurve, RecoveryCurve, ZeroRateCurve
from trspricing.errors import PricingError
from trspricing.market import Market
from trspricing.pricers import TotalReturnPricer
from trspricing.products.bond import Amortization, Bond
from trspricing.products.price_index import AssetPriceIndex
from trspricing.products.return_leg import AssetReturnLeg
from trspricing.risk import cs01_parallel, pv01_parallel

from app.types import (
    BondInput,
    BondReturnLegInput,
    CurveInput,
    HazardCurveInput,
    MarketInput,
    PriceIndexInput,
    ReturnLegResult,
    RiskMeasures,
)

logger = logging.getLogger(__name__)

_pricer = TotalReturnPricer()


def _curve_from_input(c: CurveInput) -> ZeroRateCurve:
    """Build ZeroRateCurve from GraphQL CurveInput."""
    return ZeroRateCurve(
        name=c.name,
        pillars=list(c.pillars),
        zero_rates_cc=list(c.zero_rates_cc),
        t0=c.t0,
    )


def _hazard_curve_from_input(h: HazardCurveInput, m: MarketInput) -> HazardRateCurve:
    """Build HazardRateCurve (with recovery and default state) from GraphQL input."""
    recovery = None
    if h.recovery_rate is not None:
        recovery = RecoveryCurve(recovery_rate=h.recovery_rate, jump_date=h.recovery_jump_date)
    elif h.recovery_jump_date is not None:
        raise ValueError(f"hazard curve '{h.name}': recoveryJumpDate requires recoveryRate")
    curve = HazardRateCurve(
        name=h.name,
        pillars=list(h.pillars),
        hazard_rates=list(h.hazard_rates),
        t0=h.t0,
        recovery_curve=recovery,
    )
    if h.default_date is not None:
        curve = curve.with_default(h.default_date, m.as_of)
    return curve


def market_from_input(m: MarketInput) -> Market:
    """Build Market from GraphQL MarketInput."""
    if not m.curves:
        raise ValueError("market.curves must not be empty")
    curves: dict[str, ZeroRateCurve | HazardRateCurve] = {}
    for c in m.curves:
        curves[c.name] = _curve_from_input(c)
    if m.hazard_curves:
        for h in m.hazard_curves:
            curves[h.name] = _hazard_curve_from_input(h, m)
    return Market(curves=curves, as_of=m.as_of, settle=m.settle or m.as_of)


def _validate_curve_in_market(market: Market, curve_name: str, context: str) -> None:
    if curve_name not in market.curves:
        raise ValueError(
            f"{context}: curve '{curve_name}' not found in market. "
            f"Available curves: {list(market.curves.keys())}"
        )


def _bond_from_input(b: BondInput) -> Bond:
    return Bond(
        effective=b.effective,
        maturity=b.maturity,
        coupon=b.coupon,
        frequency=b.frequency,
        notional=b.notional,
        ccy=b.ccy,
        ex_div_days=b.ex_div_days,
        amortizations=[Amortization(a.pay_date, a.amount) for a in b.amortizations or []],
        description=b.description,
    )


def _price_index_from_input(p: PriceIndexInput) -> AssetPriceIndex:
    return AssetPriceIndex(
        name=p.name,
        quoting_convention=p.quoting,
        settlement_days=p.settlement_days,
        historical_observations={o.observation_date: o.price for o in p.observations or []},
    )


def leg_from_input(leg: BondReturnLegInput) -> AssetReturnLeg:
    """Build an AssetReturnLeg on a bond from GraphQL input."""
    if leg.initial_price is not None and leg.initial_price <= 0:
        raise ValueError("leg.initialPrice must be positive")
    return AssetReturnLeg(
        underlying=_bond_from_input(leg.bond),
        effective=leg.effective,
        maturity=leg.maturity,
        ccy=leg.bond.ccy,
        initial_price=math.nan if leg.initial_price is None else leg.initial_price,
        value_dates=list(leg.value_dates or []),
        payment_lag=leg.payment_lag,
        resetting_notional=leg.resetting_notional,
        price_index=_price_index_from_input(leg.price_index) if leg.price_index else None,
        discount_curve=leg.discount_curve,
        projection_curve=leg.projection_curve,
        survival_curve=leg.survival_curve,
        notional=leg.notional,
    )


def price_bond_return_leg(
    leg: BondReturnLegInput,
    market: MarketInput,
    calculate_pv01: bool = False,
    pv01_curve_name: Optional[str] = None,
    pv01_bump_bp: float = 1.0,
    calculate_cs01: bool = False,
    cs01_hazard_curve_name: Optional[str] = None,
    cs01_bump_bp: float = 1.0,
) -> ReturnLegResult:
    """Price a bond total return leg and optionally compute PV01 / CS01."""
    m = market_from_input(market)
    _validate_curve_in_market(m, leg.discount_curve, "BondReturnLeg discount_curve")
    if leg.projection_curve:
        _validate_curve_in_market(m, leg.projection_curve, "BondReturnLeg projection_curve")
    if leg.survival_curve:
        _validate_curve_in_market(m, leg.survival_curve, "BondReturnLeg survival_curve")
    try:
        instrument = leg_from_input(leg)
        pricer = _pricer.leg_pricer(instrument, m)
        npv = pricer.product_pv()
        result = ReturnLegResult(
            npv=npv,
            accrued=pricer.accrued(),
            unrealized_gain=pricer.unrealized_gain(),
            initial_price=pricer.initial_price,
            bond_notional=pricer.bond_notional,
        )
    except PricingError as exc:
        logger.warning("bond return leg pricing failed: %s", exc)
        raise ValueError(str(exc)) from exc

    pv01_val = None
    cs01_val = None
    if calculate_pv01:
        curve_name = pv01_curve_name or leg.discount_curve
        _validate_curve_in_market(m, curve_name, "PV01")
        pv01_val = pv01_parallel(instrument, m, curve_name, bump_bp=pv01_bump_bp)
    if calculate_cs01:
        hazard_curve_name = cs01_hazard_curve_name or leg.survival_curve
        if not hazard_curve_name:
            raise ValueError("CS01: no hazard curve given and the leg has no survival curve")
        _validate_curve_in_market(m, hazard_curve_name, "CS01")
        cs01_val = cs01_parallel(instrument, m, hazard_curve_name, bump_bp=cs01_bump_bp)
    if pv01_val is not None or cs01_val is not None:
        result.risk_measures = RiskMeasures(pv01=pv01_val, cs01=cs01_val)
    return result
