"""Tests for PV01 and CS01 on return legs."""

import math
from datetime import date

from trspricing.curves import HazardRateCurve, RecoveryCurve, ZeroRateCurve
from trspricing.market import Market
from trspricing.products import AssetReturnLeg, Bond
from trspricing.risk import CS01Parallel, PV01Parallel, cs01_parallel, pv01_parallel

AS_OF = date(2016, 2, 9)
LEG_END = date(2016, 9, 7)


def _market() -> Market:
    hazard = HazardRateCurve(
        name="ISSUER_HAZ",
        pillars=[1.0, 5.0, 10.0],
        hazard_rates=[0.02, 0.02, 0.02],
        recovery_curve=RecoveryCurve(recovery_rate=0.4),
    )
    return Market(
        curves={
            "USD_DISC": ZeroRateCurve(name="USD_DISC", pillars=[1.0], zero_rates_cc=[0.03]),
            "USD_REPO": ZeroRateCurve(name="USD_REPO", pillars=[1.0], zero_rates_cc=[0.025]),
            "ISSUER_HAZ": hazard,
        },
        as_of=AS_OF,
        settle=AS_OF,
    )


def _leg(**kwargs) -> AssetReturnLeg:
    params = dict(
        underlying=Bond(effective=date(2015, 3, 20), maturity=date(2025, 9, 7), coupon=0.02),
        effective=AS_OF,
        maturity=LEG_END,
        discount_curve="USD_DISC",
        notional=1_000_000,
    )
    params.update(kwargs)
    return AssetReturnLeg(**params)


def test_pv01_receiver_positive() -> None:
    """PV = N (1 - D(t2)): rates up => D down => PV up => PV01 positive."""
    leg = _leg()
    pv01 = pv01_parallel(leg, _market(), "USD_DISC", bump_bp=1.0)
    t = (LEG_END - AS_OF).days / 365.0
    expected = 1_000_000 * (math.exp(-0.03 * t) - math.exp(-0.0301 * t))
    assert pv01 > 0
    assert abs(pv01 - expected) < 1e-6


def test_pv01_with_repo_projection_curve() -> None:
    """Bumping discount and repo curves together; the measure name lists both."""
    leg = _leg(projection_curve="USD_REPO")
    market = _market()
    measure = PV01Parallel(curve_name="USD_DISC", also_bump=("USD_REPO",))
    assert measure.name == "PV01_USD_DISC+USD_REPO"
    both = measure.compute(leg, market)
    disc_only = pv01_parallel(leg, market, "USD_DISC")
    assert both != disc_only
    assert abs(PV01Parallel(curve_name="USD_DISC").compute(leg, market) - disc_only) < 1e-10


def test_cs01_on_credit_risky_leg() -> None:
    leg = _leg(survival_curve="ISSUER_HAZ", maturity=date(2018, 2, 9))
    market = _market()
    measure = CS01Parallel(hazard_curve_name="ISSUER_HAZ", bump_bp=1.0)
    assert measure.name == "CS01_ISSUER_HAZ"
    cs01 = cs01_parallel(leg, market, "ISSUER_HAZ", bump_bp=1.0)
    assert cs01 != 0.0
    assert abs(measure.compute(leg, market) - cs01) < 1e-10


def test_cs01_zero_after_default() -> None:
    """A defaulted issuer's leg no longer depends on hazard rates."""
    market = _market()
    defaulted = market.curve("ISSUER_HAZ").with_default(date(2016, 1, 15), AS_OF)
    market = market.with_curve("ISSUER_HAZ", defaulted)
    leg = _leg(survival_curve="ISSUER_HAZ", initial_price=0.5)
    assert cs01_parallel(leg, market, "ISSUER_HAZ") == 0.0


def test_cs01_zero_without_survival_curve() -> None:
    assert cs01_parallel(_leg(), _market(), "ISSUER_HAZ") == 0.0
