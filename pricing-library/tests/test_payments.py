"""Tests for payment variants, PaymentSchedule valuation and default truncation."""

import math
from datetime import date

import pytest

from trspricing.curves import HazardRateCurve, RecoveryCurve, ZeroRateCurve
from trspricing.payments import (
    BalanceChangeAnnotation,
    DefaultSettlement,
    InterestPayment,
    PaymentSchedule,
    PrincipalExchange,
    RecoveryPayment,
    calculate_return,
    payments_with_default,
    protection_factor,
    scaled,
)

AS_OF = date(2016, 2, 9)


def _disc() -> ZeroRateCurve:
    return ZeroRateCurve(name="USD_DISC", pillars=[1.0], zero_rates_cc=[0.03])


def _hazard(recovery: RecoveryCurve | None = None) -> HazardRateCurve:
    return HazardRateCurve(
        name="HAZ", pillars=[1.0], hazard_rates=[0.02], recovery_curve=recovery
    )


def _coupon(pay: date, notional: float = 1.0) -> InterestPayment:
    return InterestPayment(
        pay_date=pay,
        accrual_start=date(pay.year - 1, pay.month, pay.day),
        accrual_end=pay,
        coupon=0.05,
        accrual_fraction=1.0,
        notional=notional,
    )


def _bond_like() -> list:
    return [
        _coupon(date(2016, 6, 1)),
        _coupon(date(2017, 6, 1)),
        _coupon(date(2018, 6, 1)),
        PrincipalExchange(pay_date=date(2018, 6, 1), notional=1.0),
    ]


def test_calculate_return() -> None:
    assert abs(calculate_return(100.0, 105.0, is_absolute=False) - 0.05) < 1e-15
    assert calculate_return(100.0, 105.0, is_absolute=True) == 5.0


def test_amounts_and_date_fallbacks() -> None:
    coupon = InterestPayment(
        pay_date=date(2016, 3, 7),
        accrual_start=date(2015, 9, 7),
        accrual_end=date(2016, 3, 7),
        coupon=0.02,
        accrual_fraction=0.5,
        notional=0.8,
        cutoff_date=date(2016, 3, 2),
    )
    assert abs(coupon.amount - 0.008) < 1e-15
    assert coupon.cutoff == date(2016, 3, 2)
    assert coupon.credit_risk_end == date(2016, 3, 7)

    recovery = RecoveryPayment(
        begin_date=date(2016, 1, 1), end_date=date(2016, 7, 1), recovery_rate=0.4, notional=2.0
    )
    assert recovery.pay_date == date(2016, 7, 1)
    assert abs(recovery.amount - 0.8) < 1e-15
    unfunded = RecoveryPayment(
        begin_date=date(2016, 1, 1), end_date=date(2016, 7, 1), recovery_rate=0.4, is_funded=False
    )
    assert abs(unfunded.amount - (-0.6)) < 1e-15

    change = BalanceChangeAnnotation(
        pay_date=date(2016, 6, 1), notional_before=1.0, notional_after=0.75
    )
    assert change.amount == 0.0
    assert change.principal_change == 0.25


def test_scaled() -> None:
    coupon = _coupon(date(2016, 6, 1))
    assert scaled(coupon, 1.0) is coupon
    assert scaled(coupon, 2.0).amount == 2.0 * coupon.amount
    with pytest.raises(TypeError):
        scaled(BalanceChangeAnnotation(date(2016, 6, 1), 1.0, 0.5), 2.0)


def test_schedule_iterates_in_pay_date_order() -> None:
    payments = _bond_like()
    schedule = PaymentSchedule(reversed(payments))
    dates = [p.pay_date for p in schedule]
    assert dates == sorted(dates)
    assert len(schedule) == 4
    assert schedule.payment_dates() == [date(2016, 6, 1), date(2017, 6, 1), date(2018, 6, 1)]
    assert len(schedule.payments_on(date(2018, 6, 1))) == 2
    assert len(schedule.between(date(2016, 6, 1), date(2018, 6, 1))) == 2
    assert len(schedule.of_type(PrincipalExchange)) == 1


def test_group_by_cutoff() -> None:
    ex_div = InterestPayment(
        pay_date=date(2016, 6, 1),
        accrual_start=date(2015, 6, 1),
        accrual_end=date(2016, 6, 1),
        coupon=0.05,
        accrual_fraction=1.0,
        cutoff_date=date(2016, 5, 25),
    )
    schedule = PaymentSchedule([_coupon(date(2017, 6, 1)), ex_div])
    groups = schedule.group_by_cutoff()
    assert [cutoff for cutoff, _ in groups] == [date(2016, 5, 25), date(2017, 6, 1)]


def test_pv_is_insertion_order_independent() -> None:
    disc, haz = _disc(), _hazard(RecoveryCurve(0.4))
    payments = _bond_like() + [
        RecoveryPayment(begin_date=AS_OF, end_date=date(2018, 6, 1), recovery_rate=0.4)
    ]
    pv1 = PaymentSchedule(payments).pv(AS_OF, AS_OF, disc, haz)
    pv2 = PaymentSchedule(reversed(payments)).pv(AS_OF, AS_OF, disc, haz)
    assert abs(pv1 - pv2) < 1e-15


def test_pv_discounts_and_weights_by_survival() -> None:
    disc, haz = _disc(), _hazard()
    pay = date(2017, 6, 1)
    schedule = PaymentSchedule([PrincipalExchange(pay_date=pay, notional=1.0)])
    t = (pay - AS_OF).days / 365.0
    assert abs(schedule.pv(AS_OF, AS_OF, disc) - math.exp(-0.03 * t)) < 1e-14
    assert abs(schedule.pv(AS_OF, AS_OF, disc, haz) - math.exp(-0.05 * t)) < 1e-14


def test_pv_settle_payments_excluded_unless_requested() -> None:
    disc = _disc()
    schedule = PaymentSchedule(
        [
            PrincipalExchange(pay_date=date(2016, 2, 1), notional=1.0),
            PrincipalExchange(pay_date=AS_OF, notional=1.0),
        ]
    )
    assert schedule.pv(AS_OF, AS_OF, disc) == 0.0
    assert schedule.pv(AS_OF, AS_OF, disc, include_settle_payments=True) == 1.0


def test_default_settlement_not_survival_weighted() -> None:
    disc, haz = _disc(), _hazard()
    pay = date(2016, 3, 1)
    settlement = DefaultSettlement(
        default_date=date(2016, 1, 15), pay_date=pay, recovery_rate=0.4
    )
    pv = PaymentSchedule([settlement]).pv(AS_OF, AS_OF, disc, haz)
    assert abs(pv - 0.4 * math.exp(-0.03 * 21 / 365)) < 1e-14


def test_credit_contingent_needs_survival_curve() -> None:
    disc, haz = _disc(), _hazard()
    recovery = RecoveryPayment(
        begin_date=AS_OF, end_date=date(2017, 2, 9), recovery_rate=0.4,
        time_grids=(date(2016, 8, 9),),
    )
    schedule = PaymentSchedule([recovery])
    assert schedule.pv(AS_OF, AS_OF, disc) == 0.0
    pv = schedule.pv(AS_OF, AS_OF, disc, haz)
    expected = 0.4 * protection_factor(recovery, AS_OF, disc, haz)
    assert abs(pv - expected) < 1e-15
    # the default probability over the year bounds the discounted protection
    assert 0.0 < protection_factor(recovery, AS_OF, disc, haz) < 1.0 - math.exp(-0.02 * 366 / 365)


def test_protection_factor_starts_at_from_date() -> None:
    disc, haz = _disc(), _hazard()
    recovery = RecoveryPayment(
        begin_date=date(2015, 6, 1), end_date=date(2016, 6, 1), recovery_rate=0.4
    )
    assert protection_factor(recovery, AS_OF, disc, haz, from_date=date(2016, 6, 1)) == 0.0
    # past part of the window carries no default risk
    full = protection_factor(recovery, AS_OF, disc, haz)
    later = protection_factor(recovery, AS_OF, disc, haz, from_date=date(2016, 4, 1))
    assert 0.0 < later < full


def test_payments_with_default_single_settlement() -> None:
    """Exactly one default settlement and nothing paid on/after the default date."""
    default_date = date(2017, 1, 15)
    haz = _hazard(RecoveryCurve(0.35, jump_date=date(2017, 2, 1)))
    schedule = payments_with_default(_bond_like(), AS_OF, default_date, 1.0, haz, "USD")
    settlements = schedule.of_type(DefaultSettlement)
    assert len(settlements) == 1
    assert settlements[0].pay_date == date(2017, 2, 1)
    assert settlements[0].recovery_rate == 0.35
    assert settlements[0].is_funded
    others = [p for p in schedule if not isinstance(p, DefaultSettlement)]
    assert others and all(p.pay_date < default_date for p in others)


def test_payments_with_default_idempotent() -> None:
    default_date = date(2017, 1, 15)
    haz = _hazard(RecoveryCurve(0.4))
    once = payments_with_default(_bond_like(), AS_OF, default_date, 1.0, haz, "USD")
    twice = payments_with_default(once, AS_OF, default_date, 1.0, haz, "USD")
    assert list(once) == list(twice)


def test_payments_with_default_without_recovery_curve() -> None:
    schedule = payments_with_default(
        _bond_like(), AS_OF, date(2017, 1, 15), 0.5, _hazard(), "USD"
    )
    (settlement,) = schedule.of_type(DefaultSettlement)
    assert settlement.recovery_rate == 0.0
    assert settlement.pay_date == date(2017, 1, 15)
    assert settlement.notional == 0.5


def test_payments_with_default_requires_survival_curve() -> None:
    with pytest.raises(AssertionError):
        payments_with_default(_bond_like(), AS_OF, date(2017, 1, 15), 1.0, None, "USD")
