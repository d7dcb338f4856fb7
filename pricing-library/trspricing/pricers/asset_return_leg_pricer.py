"""
Base pricer for asset return legs.

A return leg on one unit of notional pays, for each period [t1, t2]:
- the price return p(t2)/p(t1) - 1 (or p(t2) - p(t1) when the notional resets),
- every coupon the asset pays inside the period, divided by the entry price,
- for amortizations inside the period, the repaid face settled at par against
  the period's entry price,
- on a default inside the period, the recovery return R/p(t1) - 1.

Concrete subclasses say where the asset's cash flows come from
(`get_underlyer_payments`) and how the asset is priced (`create_price_calculator`).
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Iterator, TypeVar

from trspricing.curves import DefaultStatus, HazardRateCurve
from trspricing.errors import FieldViolation, ValidationError
from trspricing.interfaces import Curve, PriceCalculator
from trspricing.payments import (
    CREDIT_CONTINGENT,
    BalanceChangeAnnotation,
    Payment,
    PaymentSchedule,
    PriceReturnPayment,
    PrincipalExchange,
    RecoveryPayment,
    calculate_return,
    scaled,
)
from trspricing.products.price_index import AssetPriceIndex
from trspricing.products.return_leg import (
    AssetReturnLeg,
    cap_credit_risk_end,
    get_price_return_payments,
    get_recovery_returns,
    get_time_grids,
)

logger = logging.getLogger(__name__)

C = TypeVar("C")


def find_curve(curves: Iterable[Curve], curve_type: type[C]) -> C | None:
    """First curve of the given type, or None."""
    for curve in curves:
        if isinstance(curve, curve_type):
            return curve
    return None


class AssetReturnLegPricer(ABC):
    """
    Prices an AssetReturnLeg as of `as_of` for settlement on `settle`.

    Reference curves are located by type: the survival curve is the first
    HazardRateCurve among them. The price calculator is built once on first use
    and kept until `reset()`.
    """

    def __init__(
        self,
        leg: AssetReturnLeg,
        as_of: date,
        settle: date,
        discount_curve: Curve,
        reference_curves: Iterable[Curve | None] = (),
        price_index: AssetPriceIndex | None = None,
        notional: float | None = None,
    ) -> None:
        self.leg = leg
        self.as_of = as_of
        self.settle = settle
        self.discount_curve = discount_curve
        self.reference_curves: list[Curve] = [c for c in reference_curves if c is not None]
        self.price_index = price_index if price_index is not None else leg.price_index
        self.notional = leg.notional if notional is None else notional
        self._price_calculator: PriceCalculator | None = None

    @abstractmethod
    def get_underlyer_payments(self, begin: date, end: date) -> Iterator[Payment]:
        """Asset cash flows in [begin, end): balance changes, unit-face coupons, recoveries."""
        ...

    @abstractmethod
    def create_price_calculator(self) -> PriceCalculator:
        """Build the asset price calculator (called once per cache lifetime)."""
        ...

    @property
    @abstractmethod
    def underlying_maturity(self) -> date:
        ...

    @abstractmethod
    def accrued(self) -> float:
        """Accrued interest of the underlying position on settle."""
        ...

    def get_or_create_price_calculator(self) -> PriceCalculator:
        if self._price_calculator is None:
            self._price_calculator = self.create_price_calculator()
            logger.debug("created price calculator for %s", self.leg.underlying)
        return self._price_calculator

    def get_price_calculator(self) -> PriceCalculator:
        return self.get_or_create_price_calculator()

    def reset(self) -> None:
        """Drop the cached price calculator (e.g. after changing curves)."""
        self._price_calculator = None

    @property
    def survival_curve(self) -> HazardRateCurve | None:
        return find_curve(self.reference_curves, HazardRateCurve)

    @property
    def historical_prices(self) -> dict[date, float]:
        if self.price_index is None:
            return {}
        return dict(self.price_index.historical_observations)

    @property
    def initial_price(self) -> float:
        """Contract initial price, or the calculator price at effective when unset."""
        price = self.leg.initial_price
        if math.isnan(price):
            price = self.get_or_create_price_calculator().get_price(self.leg.effective).value
        return price

    @property
    def asset_default_date(self) -> date | None:
        curve = self.survival_curve
        return curve.default_date if curve is not None else None

    @property
    def asset_default_settle_date(self) -> date | None:
        default_date = self.asset_default_date
        if default_date is None:
            return None
        recovery = self.survival_curve.recovery_curve
        if recovery is not None and recovery.jump_date is not None:
            return recovery.jump_date
        return default_date

    @property
    def asset_defaulted(self) -> bool:
        return self.asset_default_date is not None

    def get_payment_schedule(self, from_date: date | None = None) -> PaymentSchedule:
        """
        Leg payments from `from_date` (leg effective when None) to maturity:
        price returns and reference amounts, coupons per unit of leg notional and,
        while the asset has not defaulted, recovery returns.
        """
        calculator = self.get_or_create_price_calculator()
        initial_price = self.initial_price
        start = self.leg.effective if from_date is None else from_date
        maturity = self.underlying_maturity

        underlying = list(self.get_underlyer_payments(start, self.leg.maturity))
        balance_info = [p for p in underlying if isinstance(p, BalanceChangeAnnotation)]

        leg_payments = [
            cap_credit_risk_end(p, maturity)
            for p in get_price_return_payments(
                self.leg, start, calculator, initial_price, balance_info,
                self.leg.resetting_notional, self.asset_default_settle_date,
            )
        ]
        schedule = PaymentSchedule(leg_payments)
        schedule.extend(
            scaled(p, 1.0 / initial_price)
            for p in underlying
            if not isinstance(p, (BalanceChangeAnnotation, PrincipalExchange, RecoveryPayment))
        )

        survival = self.survival_curve
        if survival is not None and survival.default_date is None:
            grids = get_time_grids(p for p in underlying if isinstance(p, CREDIT_CONTINGENT))
            recovery = survival.recovery_curve
            schedule.extend(
                get_recovery_returns(
                    leg_payments, maturity, grids,
                    recovery.interpolate if recovery is not None else None,
                )
            )
        logger.debug(
            "return leg schedule from %s: %d payments (%d balance changes)",
            start, len(schedule), len(balance_info),
        )
        return schedule

    def product_pv(self) -> float:
        """Present value of the leg payments after settle, times notional."""
        schedule = self.get_payment_schedule(self.settle)
        survival = self.survival_curve
        include_settle = (
            survival is not None
            and self.asset_default_settle_date == self.settle
            and survival.defaulted is DefaultStatus.WILL_DEFAULT
        )
        pv = schedule.pv(
            self.as_of,
            self.settle,
            self.discount_curve,
            None if self.asset_defaulted else survival,
            include_settle_payments=include_settle,
        )
        return pv * self.notional

    def pv(self) -> float:
        return self.product_pv()

    def unrealized_gain(self) -> float:
        """
        Mark-to-market gain of the open price-return period containing settle:
        return from the period's entry price to the current price, times notional.
        """
        default_date = self.asset_default_date
        if default_date is not None and default_date <= self.settle:
            return 0.0
        for p in self.get_payment_schedule(None):
            if isinstance(p, PriceReturnPayment) and p.begin_date <= self.settle < p.pay_date:
                current = self.get_or_create_price_calculator().get_price(self.as_of).value
                rate = calculate_return(p.begin_price, current, p.is_absolute)
                return rate * p.notional * self.notional
        return 0.0

    def validate(self) -> list[FieldViolation]:
        """Collect every configuration problem instead of failing on the first."""
        violations: list[FieldViolation] = []
        if self.discount_curve is None:
            violations.append(FieldViolation("discount_curve", "is required"))
        if self.settle < self.as_of:
            violations.append(FieldViolation("settle", "must not be before as_of"))
        if not math.isfinite(self.notional):
            violations.append(FieldViolation("notional", "must be a finite number"))
        price = self.leg.initial_price
        if not math.isnan(price) and (not math.isfinite(price) or price <= 0):
            violations.append(FieldViolation("initial_price", "must be positive (or NaN to imply it)"))
        survival = self.survival_curve
        if survival is not None:
            recovery = survival.recovery_curve
            if recovery is not None and not 0.0 <= recovery.recovery_rate <= 1.0:
                violations.append(
                    FieldViolation("survival_curve.recovery_curve", "recovery rate must be in [0, 1]")
                )
            if (
                recovery is not None
                and recovery.jump_date is not None
                and survival.default_date is not None
                and recovery.jump_date < survival.default_date
            ):
                violations.append(
                    FieldViolation(
                        "survival_curve.recovery_curve.jump_date",
                        "default settlement cannot precede the default date",
                    )
                )
        return violations

    def ensure_valid(self) -> None:
        violations = self.validate()
        if violations:
            raise ValidationError(violations)
