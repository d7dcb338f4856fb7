"""
Cash events of a return leg and the schedule that values them.

Payments are frozen dataclasses forming a closed set of variants (see `Payment`).
Every cash variant carries a `notional` scale that multiplies its unit amount, so
rescaling a payment (to unit face, or to unit leg notional) is a `replace()`.

Two dates matter besides the pay date:
- `cutoff`: the date as of which the payment belongs to the holder (pay date minus
  any ex-dividend period). Price projection includes payments with cutoff >= date.
- `credit_risk_end`: the date up to which the payment is exposed to default;
  survival probabilities are read there.
Both fall back to the pay date when not set.

Amounts of price-dependent payments are computed lazily through the price
calculator they reference.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Iterator, Union

from trspricing.config import almost_equal
from trspricing.curves import HazardRateCurve, discount_factor
from trspricing.interfaces import Curve, PriceCalculator

logger = logging.getLogger(__name__)


def calculate_return(begin_price: float, end_price: float, is_absolute: bool) -> float:
    """Absolute (end - begin) or relative (end / begin - 1) price return."""
    if is_absolute:
        return end_price - begin_price
    return end_price / begin_price - 1.0


class _PaymentDates:
    """Cutoff and credit-risk-end fallbacks shared by all variants."""

    pay_date: date
    cutoff_date: date | None
    credit_risk_end_date: date | None

    @property
    def cutoff(self) -> date:
        return self.cutoff_date or self.pay_date

    @property
    def credit_risk_end(self) -> date:
        return self.credit_risk_end_date or self.pay_date


@dataclass(frozen=True)
class InterestPayment(_PaymentDates):
    """Coupon: notional * coupon * accrual_fraction."""

    pay_date: date
    accrual_start: date
    accrual_end: date
    coupon: float
    accrual_fraction: float
    notional: float = 1.0
    ccy: str = "USD"
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def amount(self) -> float:
        return self.notional * self.coupon * self.accrual_fraction


@dataclass(frozen=True)
class PrincipalExchange(_PaymentDates):
    """Repayment of `notional` units of face value."""

    pay_date: date
    notional: float
    ccy: str = "USD"
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def amount(self) -> float:
        return self.notional


@dataclass(frozen=True)
class RecoveryPayment(_PaymentDates):
    """
    Recovery paid if the issuer defaults inside [begin_date, end_date).

    Funded: the holder receives notional * recovery_rate.
    Unfunded: the holder bears the loss notional * (recovery_rate - 1).
    """

    begin_date: date
    end_date: date
    recovery_rate: float
    notional: float = 1.0
    ccy: str = "USD"
    is_funded: bool = True
    time_grids: tuple[date, ...] = ()
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def pay_date(self) -> date:
        return self.end_date

    @property
    def amount(self) -> float:
        if self.is_funded:
            return self.notional * self.recovery_rate
        return self.notional * (self.recovery_rate - 1.0)


@dataclass(frozen=True)
class DefaultSettlement(_PaymentDates):
    """Settlement of a known default: the recovery value of the defaulted face."""

    default_date: date
    pay_date: date
    recovery_rate: float
    notional: float = 1.0
    ccy: str = "USD"
    is_funded: bool = True
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def amount(self) -> float:
        if self.is_funded:
            return self.notional * self.recovery_rate
        return self.notional * (self.recovery_rate - 1.0)


@dataclass(frozen=True)
class BalanceChangeAnnotation(_PaymentDates):
    """
    Not a cash event: remaining face (fraction of the original face at the start
    of the window) immediately before and after an amortization on pay_date.
    """

    pay_date: date
    notional_before: float
    notional_after: float
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def amount(self) -> float:
        return 0.0

    @property
    def principal_change(self) -> float:
        return self.notional_before - self.notional_after


@dataclass(frozen=True)
class PriceReturnPayment(_PaymentDates):
    """
    Price performance of the asset between begin_date and end_date, paid on pay_date.

    The begin price is `begin_price_override` when given (the leg's initial price
    for the first period) and the calculator price at begin_date otherwise.
    """

    last_pay_date: date
    pay_date: date
    begin_date: date
    end_date: date
    calculator: PriceCalculator = field(compare=False, repr=False)
    begin_price_override: float = math.nan
    is_absolute: bool = False
    notional: float = 1.0
    ccy: str = "USD"
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def credit_risk_end(self) -> date:
        return self.credit_risk_end_date or self.end_date

    @property
    def begin_price(self) -> float:
        if not math.isnan(self.begin_price_override):
            return self.begin_price_override
        return self.calculator.get_price(self.begin_date).value

    @property
    def end_price(self) -> float:
        return self.calculator.get_price(self.end_date).value

    @property
    def amount(self) -> float:
        rate = calculate_return(self.begin_price, self.end_price, self.is_absolute)
        return self.notional * rate


@dataclass(frozen=True)
class ReferenceAmountPayment(_PaymentDates):
    """
    Amortization inside a return period: the repaid face `principal_amount` is
    settled at par against its value-date price, (1 - price) * principal_amount.
    """

    pay_date: date
    notional_before: float
    principal_amount: float
    value_date: date
    calculator: PriceCalculator = field(compare=False, repr=False)
    price_override: float = math.nan
    notional: float = 1.0
    ccy: str = "USD"
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def notional_after(self) -> float:
        return self.notional_before - self.principal_amount

    @property
    def price(self) -> float:
        if not math.isnan(self.price_override):
            return self.price_override
        return self.calculator.get_price(self.value_date).value

    @property
    def amount(self) -> float:
        return self.notional * (1.0 - self.price) * self.principal_amount


@dataclass(frozen=True)
class RecoveryReturnPayment(_PaymentDates):
    """
    Return on the recovery value if the asset defaults inside [begin_date, end_date):
    recovery_rate measured against the period's value-date price.
    """

    begin_date: date
    end_date: date
    recovery_rate: float
    value_date: date
    calculator: PriceCalculator = field(compare=False, repr=False)
    price_override: float = math.nan
    is_absolute: bool = False
    notional: float = 1.0
    ccy: str = "USD"
    time_grids: tuple[date, ...] = ()
    cutoff_date: date | None = None
    credit_risk_end_date: date | None = None

    @property
    def pay_date(self) -> date:
        return self.end_date

    @property
    def price(self) -> float:
        if not math.isnan(self.price_override):
            return self.price_override
        return self.calculator.get_price(self.value_date).value

    @property
    def amount(self) -> float:
        return self.notional * calculate_return(self.price, self.recovery_rate, self.is_absolute)


Payment = Union[
    InterestPayment,
    PrincipalExchange,
    RecoveryPayment,
    DefaultSettlement,
    BalanceChangeAnnotation,
    PriceReturnPayment,
    ReferenceAmountPayment,
    RecoveryReturnPayment,
]

CreditContingentPayment = Union[RecoveryPayment, RecoveryReturnPayment]
CREDIT_CONTINGENT = (RecoveryPayment, RecoveryReturnPayment)


def scaled(payment: Payment, factor: float) -> Payment:
    """Payment with its notional multiplied by factor (unchanged when factor ~ 1)."""
    if almost_equal(factor, 1.0):
        return payment
    if isinstance(payment, BalanceChangeAnnotation):
        raise TypeError("balance change annotations carry no amount to scale")
    return replace(payment, notional=payment.notional * factor)


def protection_factor(
    payment: CreditContingentPayment,
    as_of: date,
    discount_curve: Curve,
    survival_curve: Curve,
    from_date: date | None = None,
) -> float:
    """
    Expected discounted value of 1 paid on default inside the payment window,
    sum over grid segments [a, b] of D(b) * (S(a) - S(b)), seen from as_of.

    Integration starts at max(begin_date, from_date or as_of).
    """
    start = max(payment.begin_date, from_date or as_of)
    end = payment.end_date
    if end <= start:
        return 0.0
    points = sorted({start, end, *(g for g in payment.time_grids if start < g < end)})
    total = 0.0
    s_prev = discount_factor(survival_curve, as_of, points[0])
    for b in points[1:]:
        s_b = discount_factor(survival_curve, as_of, b)
        total += discount_factor(discount_curve, as_of, b) * (s_prev - s_b)
        s_prev = s_b
    return total


class PaymentSchedule:
    """
    Multiset of payments, iterated in pay-date order (stable for equal dates).

    Insertion order never affects query results or present values.
    """

    def __init__(self, payments: Iterable[Payment] = ()) -> None:
        self._payments: list[Payment] = []
        self.extend(payments)

    def add(self, payment: Payment) -> None:
        self._payments.append(payment)

    def extend(self, payments: Iterable[Payment]) -> None:
        self._payments.extend(payments)

    def __iter__(self) -> Iterator[Payment]:
        return iter(sorted(self._payments, key=lambda p: p.pay_date))

    def __len__(self) -> int:
        return len(self._payments)

    def payment_dates(self) -> list[date]:
        """Distinct pay dates in ascending order."""
        return sorted({p.pay_date for p in self._payments})

    def payments_on(self, d: date) -> list[Payment]:
        return [p for p in self if p.pay_date == d]

    def between(self, start: date, end: date) -> list[Payment]:
        """Payments with start <= pay date < end."""
        return [p for p in self if start <= p.pay_date < end]

    def of_type(self, *types: type) -> list[Payment]:
        return [p for p in self if isinstance(p, types)]

    def group_by_cutoff(self) -> list[tuple[date, list[Payment]]]:
        """Payments grouped by cutoff date, groups in ascending cutoff order."""
        groups: dict[date, list[Payment]] = {}
        for p in self:
            groups.setdefault(p.cutoff, []).append(p)
        return sorted(groups.items(), key=lambda item: item[0])

    def pv(
        self,
        as_of: date,
        settle: date,
        discount_curve: Curve,
        survival_curve: Curve | None = None,
        include_settle_payments: bool = False,
    ) -> float:
        r"""
        Present value at as_of of the payments paid after settle.

        - Regular payments: amount * D(pay) * S(credit_risk_end).
        - Credit-contingent payments: amount * sum D(b) (S(a) - S(b)) over the window;
          worth nothing without a survival curve.
        - Default settlements are certain cash, never survival-weighted.
        Payments on settle count only when include_settle_payments is set.
        """
        total = 0.0
        for _, group in self.group_by_cutoff():
            for p in group:
                if isinstance(p, BalanceChangeAnnotation):
                    continue
                if p.pay_date < settle or (p.pay_date == settle and not include_settle_payments):
                    continue
                if isinstance(p, CREDIT_CONTINGENT):
                    if survival_curve is not None:
                        total += p.amount * protection_factor(
                            p, as_of, discount_curve, survival_curve
                        )
                    continue
                df = discount_factor(discount_curve, as_of, p.pay_date)
                if survival_curve is not None and not isinstance(p, DefaultSettlement):
                    df *= discount_factor(survival_curve, as_of, p.credit_risk_end)
                total += p.amount * df
        return total


def payments_with_default(
    payments: Iterable[Payment],
    settle: date,
    default_date: date,
    default_notional: float,
    survival_curve: HazardRateCurve,
    ccy: str,
) -> PaymentSchedule:
    """
    Replace everything paid on or after `default_date` by one funded default
    settlement of `default_notional` at the recovery rate.

    The settlement is paid on the recovery curve's jump date when there is one,
    on the default date otherwise. Without a recovery curve the recovery is 0.
    """
    assert survival_curve is not None, "default adjustment needs a survival curve"
    assert default_date is not None, "default adjustment needs a default date"

    recovery = survival_curve.recovery_curve
    recovery_rate = recovery.interpolate(default_date) if recovery is not None else 0.0
    settle_date = default_date
    if recovery is not None and recovery.jump_date is not None:
        settle_date = recovery.jump_date

    schedule = PaymentSchedule(p for p in payments if p.pay_date < default_date)
    schedule.add(
        DefaultSettlement(
            default_date=default_date,
            pay_date=settle_date,
            recovery_rate=recovery_rate,
            notional=default_notional,
            ccy=ccy,
            is_funded=True,
        )
    )
    logger.debug(
        "default on %s settles %s at recovery %.4f (pricing settle %s)",
        default_date, settle_date, recovery_rate, settle,
    )
    return schedule
