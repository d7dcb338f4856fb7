"""
Asset return leg: pays the total return of a reference asset over a sequence of
price-return periods.

The leg is contract data. The helpers below turn it into price-return,
reference-amount and recovery-return payments given a price calculator and the
asset's balance changes; the pricers supply those inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Callable, Iterable, Iterator, Sequence

from trspricing.dates import WEEKENDS_ONLY, BDConvention, Calendar, add_business_days, roll
from trspricing.interfaces import PriceCalculator
from trspricing.payments import (
    CREDIT_CONTINGENT,
    BalanceChangeAnnotation,
    CreditContingentPayment,
    Payment,
    PriceReturnPayment,
    RecoveryReturnPayment,
    ReferenceAmountPayment,
    scaled,
)


def normalize_value_dates(
    value_dates: Iterable[date] | None,
    payment_lag: int,
    effective: date,
    maturity: date,
    convention: BDConvention = BDConvention.FOLLOWING,
    calendar: Calendar = WEEKENDS_ONLY,
) -> list[date]:
    """
    Business-day value dates strictly inside the leg, plus the final value date
    `payment_lag` business days before the rolled maturity.
    """
    final_payment = roll(maturity, convention, calendar)
    final_value = add_business_days(final_payment, -payment_lag, calendar)
    if not value_dates:
        return [final_value]
    rolled = (roll(d, convention, calendar) for d in value_dates)
    inside = {d for d in rolled if effective < d < final_value}
    return sorted(inside | {final_value})


@dataclass
class AssetReturnLeg:
    """
    Total return leg on one underlying asset.

    - `initial_price`: NaN means "use the calculator price at effective".
    - `value_dates` are normalized on construction; payments follow each value
      date by `payment_lag` business days.
    - `resetting_notional`: price returns are absolute and scaled by
      balance / initial price instead of relative returns on the balance.
    - Curve names are only used when pricing through the engine.
    """

    underlying: Any
    effective: date
    maturity: date
    ccy: str = "USD"
    initial_price: float = math.nan
    value_dates: list[date] = field(default_factory=list)
    payment_lag: int = 0
    calendar: Calendar = WEEKENDS_ONLY
    roll_convention: BDConvention = BDConvention.FOLLOWING
    resetting_notional: bool = False
    price_index: Any = None
    discount_curve: str = ""
    projection_curve: str | None = None
    survival_curve: str | None = None
    notional: float = 1.0

    def __post_init__(self) -> None:
        if self.underlying is None:
            raise ValueError("return leg requires an underlying asset")
        if self.maturity <= self.effective:
            raise ValueError("return leg maturity must be after effective date")
        self.value_dates = normalize_value_dates(
            self.value_dates, self.payment_lag, self.effective, self.maturity,
            self.roll_convention, self.calendar,
        )

    def payment_date(self, value_date: date) -> date:
        return add_business_days(value_date, self.payment_lag, self.calendar)

    def valuation_periods(self) -> list[tuple[date, date]]:
        """(value date, payment date) for every price-return period."""
        return [(d, self.payment_date(d)) for d in self.value_dates]


def create_return_leg(
    underlying: Any,
    effective: date,
    maturity: date,
    ccy: str = "USD",
    initial_price: float = math.nan,
    calendar: Calendar = WEEKENDS_ONLY,
    roll_convention: BDConvention = BDConvention.FOLLOWING,
    payment_lag: int = 0,
    value_dates: Iterable[date] | None = None,
    resetting_notional: bool = False,
    **curve_refs: Any,
) -> AssetReturnLeg:
    """Build a return leg; `curve_refs` passes curve names / price index / notional."""
    return AssetReturnLeg(
        underlying=underlying,
        effective=effective,
        maturity=maturity,
        ccy=ccy,
        initial_price=initial_price,
        value_dates=list(value_dates or []),
        payment_lag=payment_lag,
        calendar=calendar,
        roll_convention=roll_convention,
        resetting_notional=resetting_notional,
        **curve_refs,
    )


def _notional_at(
    changes: Sequence[BalanceChangeAnnotation], d: date, index: int
) -> tuple[float, int]:
    """Balance fraction at d, walking the changes forward from index."""
    if not changes:
        return 1.0, index
    for i in range(index, len(changes)):
        if d < changes[i].pay_date:
            return changes[i].notional_before, i
        if d == changes[i].pay_date:
            return changes[i].notional_after, i + 1
    return changes[-1].notional_after, len(changes)


def _reference_amounts(
    changes: Sequence[BalanceChangeAnnotation],
    ccy: str,
    initial_price: float,
    value_date: date,
    calculator: PriceCalculator,
    price_override: float,
) -> Iterator[ReferenceAmountPayment]:
    # Balance changes per 1.0 invested in the leg.
    for change in changes:
        yield ReferenceAmountPayment(
            pay_date=change.pay_date,
            notional_before=change.notional_before / initial_price,
            principal_amount=change.principal_change / initial_price,
            value_date=value_date,
            calculator=calculator,
            price_override=price_override,
            ccy=ccy,
            credit_risk_end_date=change.credit_risk_end,
        )


def get_price_return_payments(
    leg: AssetReturnLeg,
    from_date: date,
    calculator: PriceCalculator,
    initial_price: float,
    balance_info: Sequence[BalanceChangeAnnotation],
    resetting_notional: bool,
    default_settle_date: date | None = None,
) -> Iterator[Payment]:
    """
    Price-return payments of the leg paid after from_date, with a reference amount
    for every amortization falling inside a period.

    A default settling on or before a period's payment date closes that period on
    the settle date and ends the leg.
    """
    assert not math.isnan(initial_price), "initial price must be resolved"

    defaulted = default_settle_date is not None
    if defaulted and default_settle_date < from_date:
        return

    begin = last_pay = leg.effective
    index = 0
    balance, index = _notional_at(balance_info, begin, index)
    if balance <= 0:
        return

    for i, (value_date, pay_date) in enumerate(leg.valuation_periods()):
        override = initial_price if i == 0 else math.nan
        if defaulted and default_settle_date <= pay_date:
            balance, index = _notional_at(balance_info, default_settle_date, index)
            payment = PriceReturnPayment(
                last_pay_date=last_pay,
                pay_date=default_settle_date,
                begin_date=begin,
                end_date=default_settle_date + timedelta(days=1),
                calculator=calculator,
                begin_price_override=override,
                is_absolute=resetting_notional,
                ccy=leg.ccy,
            )
            yield scaled(payment, balance / initial_price if resetting_notional else balance)
            return

        last_index = index
        balance, index = _notional_at(balance_info, pay_date, index)
        if from_date < pay_date:
            if index != last_index:
                yield from _reference_amounts(
                    balance_info[last_index:index], leg.ccy, initial_price,
                    begin, calculator, override,
                )
            if balance <= 0:
                return
            payment = PriceReturnPayment(
                last_pay_date=last_pay,
                pay_date=pay_date,
                begin_date=begin,
                end_date=value_date,
                calculator=calculator,
                begin_price_override=override,
                is_absolute=resetting_notional,
                ccy=leg.ccy,
            )
            yield scaled(payment, balance / initial_price if resetting_notional else balance)
        elif balance <= 0:
            return

        last_pay = pay_date
        begin = value_date


def cap_credit_risk_end(payment: Payment, underlying_maturity: date) -> Payment:
    """Exposure of leg payments to the issuer stops at the asset's maturity."""
    if isinstance(payment, (PriceReturnPayment, ReferenceAmountPayment)):
        if payment.credit_risk_end > underlying_maturity:
            return replace(payment, credit_risk_end_date=underlying_maturity)
    return payment


def get_recovery_returns(
    payments: Iterable[Payment],
    underlying_maturity: date,
    time_grids: Sequence[date],
    recovery_function: Callable[[date], float] | None,
) -> Iterator[RecoveryReturnPayment]:
    """
    One recovery-return payment per price-return or reference-amount payment,
    covering the window during which a default would settle against that price.
    """
    grids = tuple(time_grids)
    for p in payments:
        if isinstance(p, PriceReturnPayment):
            yield RecoveryReturnPayment(
                begin_date=p.last_pay_date,
                end_date=min(p.credit_risk_end, underlying_maturity),
                recovery_rate=recovery_function(p.pay_date) if recovery_function else 0.0,
                value_date=p.begin_date,
                calculator=p.calculator,
                price_override=p.begin_price_override,
                is_absolute=p.is_absolute,
                notional=p.notional,
                ccy=p.ccy,
                time_grids=grids,
                cutoff_date=p.cutoff_date,
            )
        elif isinstance(p, ReferenceAmountPayment):
            yield RecoveryReturnPayment(
                begin_date=p.value_date,
                end_date=min(p.credit_risk_end, underlying_maturity),
                recovery_rate=recovery_function(p.pay_date) if recovery_function else 0.0,
                value_date=p.value_date,
                calculator=p.calculator,
                price_override=p.price_override,
                is_absolute=True,
                notional=p.notional * p.principal_amount,
                ccy=p.ccy,
                time_grids=grids,
                cutoff_date=p.cutoff_date,
            )


def get_time_grids(payments: Iterable[CreditContingentPayment]) -> list[date]:
    """Sorted distinct dates bounding (or gridding) the credit-contingent payments."""
    grid: set[date] = set()
    for p in payments:
        if not isinstance(p, CREDIT_CONTINGENT):
            continue
        if p.time_grids:
            grid.update(p.time_grids)
        else:
            grid.update((p.begin_date, p.end_date))
    return sorted(grid)


def preceding_value_date(leg: AssetReturnLeg, reference_date: date) -> date:
    """Start of the price-return period containing reference_date."""
    begin = leg.effective
    for value_date in leg.value_dates:
        if value_date >= reference_date:
            break
        begin = value_date
    return begin
