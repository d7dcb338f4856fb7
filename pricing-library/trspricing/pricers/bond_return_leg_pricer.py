"""
Return leg on a fixed-coupon bond.

The bond's cash flows (face-value units) are re-expressed per unit of face
outstanding at the start of the pricing window; a known default replaces
everything from the default date on by a single recovery settlement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from itertools import groupby
from typing import Iterable, Iterator, Sequence

from trspricing.curves import HazardRateCurve, ZeroRateCurve
from trspricing.errors import FieldViolation
from trspricing.interfaces import Curve, PriceCalculator
from trspricing.payments import (
    BalanceChangeAnnotation,
    Payment,
    PaymentSchedule,
    PrincipalExchange,
    RecoveryPayment,
    payments_with_default,
    scaled,
)
from trspricing.pricers.asset_return_leg_pricer import AssetReturnLegPricer, find_curve
from trspricing.pricers.deflator import build_projection_deflator
from trspricing.pricers.price_calculator import AccruedInterestAdjustment, CashflowPriceCalculator
from trspricing.products.bond import Bond
from trspricing.products.price_index import AssetPriceIndex, QuotingConvention
from trspricing.products.return_leg import AssetReturnLeg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Balances:
    """Face at the start of the window and face outstanding now."""

    initial: float
    current: float


def _fold_payment_date(
    state: _Balances,
    pay_date: date,
    payments: Iterable[Payment],
    begin: date,
    end: date,
) -> tuple[_Balances, list[Payment]]:
    """
    Process all bond payments of one pay date.

    Repayments effective before the window move the baseline; those inside the
    window are netted into one balance change. Coupons inside the window are
    normalized to unit initial face, recovery windows overlapping it pass through.
    """
    initial, balance = state.initial, state.current
    included = 0.0
    cutoff = credit_end = None
    others: list[Payment] = []
    for p in payments:
        if not isinstance(p, PrincipalExchange):
            others.append(p)
            continue
        if p.cutoff < begin:
            initial -= p.amount
            balance = initial
        elif p.cutoff < end:
            included += p.amount
            cutoff, credit_end = p.cutoff, p.credit_risk_end

    emitted: list[Payment] = []
    if included != 0.0:
        after = balance - included
        emitted.append(
            BalanceChangeAnnotation(
                pay_date=pay_date,
                notional_before=balance / initial,
                notional_after=after / initial,
                cutoff_date=cutoff,
                credit_risk_end_date=credit_end,
            )
        )
        balance = after

    for p in others:
        if isinstance(p, RecoveryPayment):
            if p.end_date > begin and p.begin_date < end:
                emitted.append(p)
        elif begin <= p.cutoff < end and initial > 0:
            emitted.append(scaled(p, 1.0 / initial))
    return _Balances(initial, balance), emitted


class BondReturnLegPricer(AssetReturnLegPricer):
    """
    Pricer for an AssetReturnLeg whose underlying is a Bond.

    The bond is projected on `projection_curve` (e.g. a repo curve) when given,
    on the discount curve otherwise.
    """

    def __init__(
        self,
        leg: AssetReturnLeg,
        as_of: date,
        settle: date,
        discount_curve: Curve,
        projection_curve: Curve | None = None,
        survival_curve: Curve | None = None,
        price_index: AssetPriceIndex | None = None,
        notional: float | None = None,
    ) -> None:
        super().__init__(
            leg, as_of, settle, discount_curve,
            reference_curves=[projection_curve, survival_curve],
            price_index=price_index,
            notional=notional,
        )

    @classmethod
    def from_reference_curves(
        cls,
        leg: AssetReturnLeg,
        as_of: date,
        settle: date,
        discount_curve: Curve,
        reference_curves: Sequence[Curve] = (),
        price_index: AssetPriceIndex | None = None,
        notional: float | None = None,
    ) -> "BondReturnLegPricer":
        """Builder used by the pricer factory: curves are located by type."""
        return cls(
            leg, as_of, settle, discount_curve,
            projection_curve=find_curve(reference_curves, ZeroRateCurve),
            survival_curve=find_curve(reference_curves, HazardRateCurve),
            price_index=price_index,
            notional=notional,
        )

    @property
    def bond(self) -> Bond:
        return self.leg.underlying

    @property
    def underlying_maturity(self) -> date:
        return self.bond.maturity

    @property
    def bond_notional(self) -> float:
        """Bond face held per the leg notional: notional / initial price."""
        return self.notional / self.initial_price

    @property
    def discount_curve_for_price_projection(self) -> Curve:
        return find_curve(self.reference_curves, ZeroRateCurve) or self.discount_curve

    def accrued(self) -> float:
        return self.bond_notional * self.bond.accrued(self.settle) / self.bond.notional

    def _bond_payments(self) -> PaymentSchedule:
        """Full-life bond cash flows, cut at the default date if there is one."""
        survival = self.survival_curve
        payments = self.bond.payment_schedule(survival)
        default_date = self.asset_default_date
        if default_date is None:
            return payments
        deflator = build_projection_deflator(payments, self.bond.notional)
        face = deflator(default_date) if deflator is not None else self.bond.notional
        return payments_with_default(
            payments, self.settle, default_date, face, survival, self.bond.ccy
        )

    def get_underlyer_payments(self, begin: date, end: date) -> Iterator[Payment]:
        assert begin <= end, "window begin must not be after its end"
        state = _Balances(self.bond.notional, self.bond.notional)
        for pay_date, group in groupby(self._bond_payments(), key=lambda p: p.pay_date):
            state, emitted = _fold_payment_date(state, pay_date, group, begin, end)
            yield from emitted

    def create_price_calculator(self) -> PriceCalculator:
        survival = self.survival_curve
        default_date = self.asset_default_date
        adjustment = None
        if (
            self.price_index is not None
            and self.price_index.quoting_convention is QuotingConvention.FLAT_PRICE
        ):
            adjustment = AccruedInterestAdjustment(self.bond, self.price_index, default_date)
        logger.debug(
            "bond price calculator for %r as of %s (defaulted=%s)",
            self.bond.description, self.as_of, default_date is not None,
        )
        return CashflowPriceCalculator(
            self.as_of,
            self._bond_payments(),
            self.discount_curve_for_price_projection,
            historical_prices=self.historical_prices,
            price_adjustment=adjustment,
            survival_curve=survival if default_date is None else None,
            pricing_date_payments_excluded=False,
            index_name=self.bond.description,
        )

    def validate(self) -> list[FieldViolation]:
        violations = super().validate()
        bond = self.bond
        if bond.is_floating:
            violations.append(
                FieldViolation("underlying", "return legs on floating rate bonds are not supported")
            )
        if sum(a.amount for a in bond.amortizations) > 1.0 + 1e-12:
            violations.append(
                FieldViolation("underlying.amortizations", "exceed the bond face value")
            )
        if self.leg.effective >= bond.maturity:
            violations.append(
                FieldViolation("effective", "return leg starts after the bond matures")
            )
        return violations
