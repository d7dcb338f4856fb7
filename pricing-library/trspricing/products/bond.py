"""Fixed-coupon bond (contract data plus its contractual cash flows)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from trspricing.curves import HazardRateCurve
from trspricing.dates import (
    WEEKENDS_ONLY,
    BDConvention,
    Calendar,
    DayCount,
    add_business_days,
    add_months,
    roll,
    year_fraction,
)
from trspricing.payments import (
    InterestPayment,
    PaymentSchedule,
    PrincipalExchange,
    RecoveryPayment,
)


@dataclass(frozen=True)
class Amortization:
    """Scheduled repayment of `amount` (fraction of original face) on pay_date."""

    pay_date: date
    amount: float


@dataclass
class Bond:
    """
    Fixed-rate bond, coupons generated backward from maturity every 12/frequency
    months (short first period if needed).

    - Coupon accrues on the face outstanding at the start of each period.
    - `amortizations` repay fractions of the original face; whatever remains is
      redeemed at maturity.
    - With `ex_div_days > 0` every payment goes ex that many business days before
      it is paid (its cutoff date), and accrued interest turns negative in between.
    """

    effective: date
    maturity: date
    coupon: float
    frequency: int = 2
    notional: float = 1.0
    ccy: str = "USD"
    day_count: DayCount = DayCount.ACT_365F
    calendar: Calendar = WEEKENDS_ONLY
    roll_convention: BDConvention = BDConvention.FOLLOWING
    ex_div_days: int = 0
    amortizations: list[Amortization] = field(default_factory=list)
    description: str = ""
    is_floating: bool = False

    def __post_init__(self) -> None:
        if self.maturity <= self.effective:
            raise ValueError("bond maturity must be after effective date")
        if self.frequency not in (1, 2, 4, 12):
            raise ValueError("frequency must be one of 1, 2, 4, 12")
        if self.notional <= 0:
            raise ValueError("bond notional must be positive")
        for a in self.amortizations:
            if not self.effective < a.pay_date <= self.maturity:
                raise ValueError(f"amortization date {a.pay_date} outside bond life")
        self.amortizations = sorted(self.amortizations, key=lambda a: a.pay_date)

    def coupon_periods(self) -> list[tuple[date, date]]:
        """Unadjusted (start, end) accrual periods from effective to maturity."""
        months = 12 // self.frequency
        ends: list[date] = []
        k = 0
        d = self.maturity
        while d > self.effective:
            ends.append(d)
            k += 1
            d = add_months(self.maturity, -months * k)
        ends.reverse()
        starts = [self.effective] + ends[:-1]
        return list(zip(starts, ends))

    def pay_date(self, d: date) -> date:
        return roll(d, self.roll_convention, self.calendar)

    def cutoff_date(self, pay_date: date) -> date:
        """Ex-dividend date of a payment made on pay_date."""
        if self.ex_div_days <= 0:
            return pay_date
        return add_business_days(pay_date, -self.ex_div_days, self.calendar)

    def balance_at(self, d: date) -> float:
        """Face outstanding after every amortization dated on or before d."""
        repaid = sum(a.amount for a in self.amortizations if a.pay_date <= d)
        return self.notional * max(1.0 - repaid, 0.0)

    def payment_schedule(self, survival_curve: HazardRateCurve | None = None) -> PaymentSchedule:
        """
        Contractual cash flows over the whole bond life.

        When a survival curve is given, each coupon period also carries a
        RecoveryPayment paying the recovery rate on the period's face on default.
        """
        schedule = PaymentSchedule()
        recovery = survival_curve.recovery_curve if survival_curve is not None else None
        for start, end in self.coupon_periods():
            pay = self.pay_date(end)
            cutoff = self.cutoff_date(pay)
            face = self.balance_at(start)
            if face <= 0:
                break
            schedule.add(
                InterestPayment(
                    pay_date=pay,
                    accrual_start=start,
                    accrual_end=end,
                    coupon=self.coupon,
                    accrual_fraction=year_fraction(start, end, self.day_count),
                    notional=face,
                    ccy=self.ccy,
                    cutoff_date=cutoff if cutoff != pay else None,
                )
            )
            if survival_curve is not None:
                schedule.add(
                    RecoveryPayment(
                        begin_date=start,
                        end_date=end,
                        recovery_rate=recovery.interpolate(end) if recovery is not None else 0.0,
                        notional=face,
                        ccy=self.ccy,
                    )
                )
        for a in self.amortizations:
            schedule.add(self._principal(a.pay_date, a.amount * self.notional))
        remaining = self.notional - sum(a.amount * self.notional for a in self.amortizations)
        if remaining > 1e-12 * self.notional:
            schedule.add(self._principal(self.maturity, remaining))
        return schedule

    def _principal(self, d: date, amount: float) -> PrincipalExchange:
        pay = self.pay_date(d)
        cutoff = self.cutoff_date(pay)
        return PrincipalExchange(
            pay_date=pay,
            notional=amount,
            ccy=self.ccy,
            cutoff_date=cutoff if cutoff != pay else None,
        )

    def accrued_fraction(self, d: date) -> float:
        """
        Accrued coupon per unit of outstanding face on settlement date d.

        Negative between the ex-dividend date and the coupon end: the buyer does
        not receive the next coupon and is compensated for the remaining days.
        """
        for start, end in self.coupon_periods():
            if start <= d < end:
                if self.ex_div_days > 0 and d >= self.cutoff_date(self.pay_date(end)):
                    return -self.coupon * year_fraction(d, end, self.day_count)
                return self.coupon * year_fraction(start, d, self.day_count)
        return 0.0

    def accrued(self, d: date) -> float:
        """Accrued interest on the face outstanding at d."""
        return self.accrued_fraction(d) * self.balance_at(d)
