"""Tests for the bond return leg pricer: schedule assembly, valuation, defaults."""

import math
from datetime import date

import pytest

from trspricing.curves import HazardRateCurve, RecoveryCurve, ZeroRateCurve
from trspricing.errors import MissingFixingError, UnsupportedAssetError, ValidationError
from trspricing.payments import (
    BalanceChangeAnnotation,
    DefaultSettlement,
    InterestPayment,
    PriceReturnPayment,
    RecoveryReturnPayment,
    ReferenceAmountPayment,
)
from trspricing.pricers import BondReturnLegPricer, create_default_factory
from trspricing.products import (
    Amortization,
    AssetPriceIndex,
    AssetReturnLeg,
    Bond,
    QuotingConvention,
)

AS_OF = date(2016, 2, 9)
RATE = 0.03


def _disc() -> ZeroRateCurve:
    return ZeroRateCurve(name="USD_DISC", pillars=[1.0], zero_rates_cc=[RATE])


def _df(d: date, as_of: date = AS_OF) -> float:
    return math.exp(-RATE * (d - as_of).days / 365.0)


def _bond(**kwargs) -> Bond:
    params = dict(
        effective=date(2015, 3, 20),
        maturity=date(2025, 9, 7),
        coupon=0.02,
        description="ACME 2% 2025",
    )
    params.update(kwargs)
    return Bond(**params)


def _leg(bond: Bond | None = None, **kwargs) -> AssetReturnLeg:
    params = dict(effective=AS_OF, maturity=date(2016, 9, 7))
    params.update(kwargs)
    return AssetReturnLeg(underlying=bond or _bond(), **params)


def _hazard(rate: float = 0.02, recovery: float = 0.4, jump: date | None = None) -> HazardRateCurve:
    return HazardRateCurve(
        name="ISSUER_HAZ",
        pillars=[1.0],
        hazard_rates=[rate],
        recovery_curve=RecoveryCurve(recovery_rate=recovery, jump_date=jump),
    )


def _pricer(leg: AssetReturnLeg, as_of: date = AS_OF, settle: date | None = None, **kwargs):
    return BondReturnLegPricer(leg, as_of, settle or as_of, _disc(), **kwargs)


def test_pv_identity_leg_inside_bond_life() -> None:
    """Leg started today on a default-free bullet bond: PV = N * (1 - D(t2))."""
    pricer = _pricer(_leg(notional=250.0))
    expected = 250.0 * (1.0 - _df(date(2016, 9, 7)))
    assert abs(pricer.product_pv() - expected) < 1e-10
    assert pricer.pv() == pricer.product_pv()


def test_pv_identity_leg_outliving_bond() -> None:
    """Leg ending after the bond redeems: PV = 1 - D(T_N), T_N the redemption pay date."""
    leg = _leg(maturity=date(2025, 9, 10))
    pricer = _pricer(leg)
    schedule = pricer.get_payment_schedule(AS_OF)
    assert not schedule.of_type(PriceReturnPayment)
    (reference,) = schedule.of_type(ReferenceAmountPayment)
    assert reference.pay_date == date(2025, 9, 8)
    assert abs(pricer.product_pv() - (1.0 - _df(date(2025, 9, 8)))) < 1e-10


def test_pv_identity_with_intermediate_resets() -> None:
    """Resets between coupon dates leave a leg started at the model price at 1 - D(t_N)."""
    leg = _leg(value_dates=[date(2016, 5, 9), date(2016, 7, 11)])
    pricer = _pricer(leg)
    assert len(pricer.get_payment_schedule(AS_OF).of_type(PriceReturnPayment)) == 3
    assert abs(pricer.product_pv() - (1.0 - _df(date(2016, 9, 7)))) < 1e-10


def test_zero_hazard_matches_default_free() -> None:
    plain = _pricer(_leg()).product_pv()
    risky = _pricer(_leg(), survival_curve=_hazard(rate=0.0)).product_pv()
    assert abs(plain - risky) < 1e-12


def test_pv_identity_with_credit_risk() -> None:
    """
    Risky bullet bond, leg started today at the model price:
    PV = 1 - D(t2) S(t2) - sum D(b) (S(a) - S(b)) over the coupon-date grid,
    whatever the recovery rate.
    """
    t2 = date(2016, 9, 7)

    def survival(d: date) -> float:
        return math.exp(-0.02 * (d - AS_OF).days / 365.0)

    grid = [AS_OF, date(2016, 3, 7), t2]
    protection = sum(
        _df(b) * (survival(a) - survival(b)) for a, b in zip(grid, grid[1:])
    )
    expected = 1.0 - _df(t2) * survival(t2) - protection

    pv = _pricer(_leg(), survival_curve=_hazard(rate=0.02, recovery=0.4)).product_pv()
    assert abs(pv - expected) < 1e-10
    other_recovery = _pricer(_leg(), survival_curve=_hazard(rate=0.02, recovery=0.7)).product_pv()
    assert abs(other_recovery - pv) < 1e-10


def test_initial_price_fallback() -> None:
    """NaN initial price: the calculator price at effective is used verbatim."""
    pricer = _pricer(_leg(notional=1_000_000.0))
    p_eff = pricer.get_price_calculator().get_price(AS_OF).value
    assert pricer.initial_price == p_eff
    assert pricer.bond_notional == 1_000_000.0 / p_eff
    coupon = pricer.get_payment_schedule(AS_OF).of_type(InterestPayment)[0]
    assert coupon.notional == 1.0 / p_eff


def test_initial_price_from_flat_history() -> None:
    """Seasoned leg: implied entry price is the flat quote plus accrued."""
    index = AssetPriceIndex(
        name="ACME 2% 2025",
        quoting_convention=QuotingConvention.FLAT_PRICE,
        historical_observations={date(2016, 1, 4): 0.99},
    )
    pricer = _pricer(_leg(effective=date(2016, 1, 4)), price_index=index)
    accrued = 0.02 * (date(2016, 1, 4) - date(2015, 9, 7)).days / 365.0
    assert abs(pricer.initial_price - (0.99 + accrued)) < 1e-15


def test_missing_entry_price_raises() -> None:
    pricer = _pricer(_leg(effective=date(2016, 1, 4)))
    with pytest.raises(MissingFixingError, match="2016-01-04"):
        pricer.product_pv()


def test_accrued_scales_with_bond_notional() -> None:
    pricer = _pricer(_leg(initial_price=0.8, notional=100.0))
    fraction = 0.02 * (AS_OF - date(2015, 9, 7)).days / 365.0
    assert pricer.bond_notional == 125.0
    assert abs(pricer.accrued() - 125.0 * fraction) < 1e-12


def test_price_calculator_cached_until_reset() -> None:
    pricer = _pricer(_leg())
    calc = pricer.get_price_calculator()
    assert pricer.get_or_create_price_calculator() is calc
    pricer.reset()
    assert pricer.get_price_calculator() is not calc


def _amortizing_bond() -> Bond:
    return _bond(
        amortizations=[
            Amortization(date(2016, 6, 7), 0.25),
            Amortization(date(2019, 9, 9), 0.25),
            Amortization(date(2022, 9, 7), 0.25),
            Amortization(date(2025, 9, 7), 0.25),
        ]
    )


def test_amortization_conservation() -> None:
    """Balance changes over the asset life sum to a full paydown starting from 1."""
    pricer = _pricer(_leg(_amortizing_bond()))
    payments = list(pricer.get_underlyer_payments(date(2015, 3, 20), date(2026, 1, 1)))
    changes = [p for p in payments if isinstance(p, BalanceChangeAnnotation)]
    assert len(changes) == 4
    assert changes[0].notional_before == 1.0
    assert abs(sum(c.notional_after - c.notional_before for c in changes) - (-1.0)) < 1e-15


def test_window_after_amortization_rebases_to_unit_face() -> None:
    pricer = _pricer(_leg(_amortizing_bond()))
    payments = list(pricer.get_underlyer_payments(date(2016, 7, 1), date(2026, 1, 1)))
    changes = [p for p in payments if isinstance(p, BalanceChangeAnnotation)]
    assert changes[0].notional_before == 1.0
    assert abs(changes[0].notional_after - 2.0 / 3.0) < 1e-15
    assert abs(sum(c.principal_change for c in changes) - 1.0) < 1e-15
    # coupons accrue on the face at period start, re-expressed per unit of window face
    coupon = next(
        p for p in payments
        if isinstance(p, InterestPayment) and p.accrual_start == date(2016, 9, 7)
    )
    assert abs(coupon.notional - 1.0) < 1e-15


def test_amortization_inside_period_yields_reference_amount() -> None:
    leg = _leg(_amortizing_bond(), value_dates=[date(2016, 5, 9)], initial_price=1.0)
    schedule = _pricer(leg).get_payment_schedule(AS_OF)
    returns = schedule.of_type(PriceReturnPayment)
    assert [p.notional for p in returns] == [1.0, 0.75]
    (reference,) = schedule.of_type(ReferenceAmountPayment)
    assert reference.pay_date == date(2016, 6, 7)
    assert reference.value_date == date(2016, 5, 9)
    assert reference.principal_amount == 0.25
    assert reference.notional_before == 1.0


def test_resetting_notional_uses_absolute_returns() -> None:
    leg = _leg(_amortizing_bond(), value_dates=[date(2016, 5, 9)], initial_price=0.8,
               resetting_notional=True)
    returns = _pricer(leg).get_payment_schedule(AS_OF).of_type(PriceReturnPayment)
    assert all(p.is_absolute for p in returns)
    assert [p.notional for p in returns] == [1.0 / 0.8, 0.75 / 0.8]


def test_survival_curve_adds_recovery_returns() -> None:
    leg = _leg(_amortizing_bond(), value_dates=[date(2016, 5, 9)], initial_price=1.0)
    schedule = _pricer(leg, survival_curve=_hazard()).get_payment_schedule(AS_OF)
    recoveries = schedule.of_type(RecoveryReturnPayment)
    assert len(recoveries) == 3
    assert all(r.recovery_rate == 0.4 for r in recoveries)
    assert all(r.time_grids for r in recoveries)


def _defaulted(default_date: date, as_of: date = AS_OF, jump: date | None = None):
    return _hazard(jump=jump).with_default(default_date, as_of)


def test_defaulted_bond_settles_at_recovery() -> None:
    """Default before as_of settled on the jump date: PV = (R - P0) D(as_of, dsd)."""
    survival = _defaulted(date(2016, 1, 15), jump=date(2016, 3, 1))
    pricer = _pricer(_leg(initial_price=0.5), survival_curve=survival, notional=0.5)
    assert pricer.asset_defaulted
    assert pricer.asset_default_settle_date == date(2016, 3, 1)
    schedule = pricer.get_payment_schedule(AS_OF)
    assert len(schedule.of_type(DefaultSettlement)) == 1
    assert not schedule.of_type(RecoveryReturnPayment)
    assert abs(pricer.product_pv() - (0.4 - 0.5) * _df(date(2016, 3, 1))) < 1e-14


def test_default_settled_before_settle_is_worthless() -> None:
    survival = _defaulted(date(2016, 1, 15))
    pricer = _pricer(_leg(initial_price=0.5), survival_curve=survival, notional=0.5)
    assert pricer.product_pv() == 0.0


def test_past_default_settling_on_settle_date_is_excluded() -> None:
    survival = _defaulted(date(2016, 2, 1), jump=AS_OF)
    pricer = _pricer(_leg(initial_price=0.5), survival_curve=survival, notional=0.5)
    assert pricer.product_pv() == 0.0


def test_hypothetical_default_on_settle_date_is_included() -> None:
    settle = date(2016, 2, 11)
    survival = _defaulted(settle)
    pricer = _pricer(_leg(initial_price=0.5), settle=settle, survival_curve=survival, notional=0.5)
    assert abs(pricer.product_pv() - (0.4 - 0.5) * _df(settle)) < 1e-14


def test_default_face_of_amortizing_bond_from_deflator() -> None:
    survival = _defaulted(date(2020, 1, 15), as_of=date(2020, 2, 3))
    pricer = _pricer(_leg(_amortizing_bond(), initial_price=0.5), survival_curve=survival)
    (settlement,) = [p for p in pricer._bond_payments() if isinstance(p, DefaultSettlement)]
    # balance recorded at the greatest repayment cutoff on or before the default (2019-09-09)
    assert settlement.notional == 0.75


def test_unrealized_gain_of_open_period() -> None:
    """Entry at 1.00, today at 1.05, relative return: gain = 5% of notional."""
    index = AssetPriceIndex(name="ACME 2% 2025", historical_observations={AS_OF: 1.05})
    leg = _leg(effective=date(2016, 1, 4), initial_price=1.0, price_index=index)
    pricer = _pricer(leg, notional=100.0)
    assert pricer.unrealized_gain() == pytest.approx(5.0)


def test_unrealized_gain_zero_on_period_pay_date() -> None:
    leg = _leg(effective=date(2016, 1, 4), initial_price=1.0)
    pricer = _pricer(leg, as_of=date(2016, 9, 7), notional=100.0)
    assert pricer.unrealized_gain() == 0.0


def test_unrealized_gain_zero_after_default() -> None:
    survival = _defaulted(date(2016, 1, 15), jump=date(2016, 3, 1))
    pricer = _pricer(_leg(initial_price=0.5), survival_curve=survival)
    assert pricer.unrealized_gain() == 0.0


def test_validate_collects_all_problems() -> None:
    bond = _bond(
        maturity=date(2016, 1, 4),
        is_floating=True,
        amortizations=[Amortization(date(2015, 6, 1), 0.6), Amortization(date(2015, 9, 1), 0.6)],
    )
    survival = _hazard(jump=date(2016, 1, 1)).with_default(date(2016, 1, 15), AS_OF)
    pricer = _pricer(_leg(bond, initial_price=-1.0), survival_curve=survival)
    fields = {v.field for v in pricer.validate()}
    assert fields == {
        "initial_price",
        "survival_curve.recovery_curve.jump_date",
        "underlying",
        "underlying.amortizations",
        "effective",
    }
    with pytest.raises(ValidationError, match="Invalid return leg inputs") as info:
        pricer.ensure_valid()
    assert len(info.value.violations) == 5


def test_valid_leg_has_no_violations() -> None:
    assert _pricer(_leg(), survival_curve=_hazard()).validate() == []


def test_factory_locates_curves_by_type() -> None:
    leg = _leg()
    pricer = create_default_factory().create(
        leg, AS_OF, AS_OF, _disc(), [_hazard()], notional=10.0
    )
    assert isinstance(pricer, BondReturnLegPricer)
    assert pricer.survival_curve.name == "ISSUER_HAZ"
    assert pricer.discount_curve_for_price_projection is pricer.discount_curve
    assert pricer.notional == 10.0


def test_factory_covers_subclasses_and_rejects_unknown_assets() -> None:
    class CallableBond(Bond):
        pass

    factory = create_default_factory()
    assert factory.supports(CallableBond)
    leg = _leg(object())
    with pytest.raises(UnsupportedAssetError, match="object"):
        factory.create(leg, AS_OF, AS_OF, _disc())
