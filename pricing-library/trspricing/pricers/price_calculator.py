"""
Asset price calculators used by return-leg pricers.

`CashflowPriceCalculator` prices an asset from its remaining cash flows:

    p(t) = (1 / face(t)) * [ sum_{cutoff_i >= t} c_i D(t, T_i) S(t, T_i)
                             + sum over recovery windows of R * D * dS ]

where face(t) is the face value still outstanding at t (principal with cutoff on
or after t, plus any defaulted face awaiting settlement). Before the valuation
date prices come from the historical observations instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Mapping

from trspricing.curves import discount_factor
from trspricing.dates import add_business_days
from trspricing.errors import MissingFixingError
from trspricing.interfaces import Curve, PriceValue
from trspricing.payments import (
    CREDIT_CONTINGENT,
    BalanceChangeAnnotation,
    DefaultSettlement,
    Payment,
    PrincipalExchange,
    protection_factor,
)
from trspricing.products.bond import Bond
from trspricing.products.price_index import AssetPriceIndex

logger = logging.getLogger(__name__)

PriceAdjustment = Callable[[float, date], float]


class CashflowPriceCalculator:
    """
    Observed prices for past dates, cash-flow projected prices otherwise.

    - Dates before `as_of` must have an observation (MissingFixingError if not).
    - On `as_of` an observation wins when present, otherwise the price is projected.
    - `price_adjustment(price, date)` converts observations to full prices.
    - With `pricing_date_payments_excluded`, payments whose cutoff equals the
      pricing date are treated as already gone (ex) instead of included (cum).
    Results are cached per date for the life of the calculator.
    """

    def __init__(
        self,
        as_of: date,
        payments: Iterable[Payment],
        discount_curve: Curve,
        historical_prices: Mapping[date, float] | None = None,
        price_adjustment: PriceAdjustment | None = None,
        survival_curve: Curve | None = None,
        pricing_date_payments_excluded: bool = False,
        index_name: str = "",
    ) -> None:
        self.as_of = as_of
        self.payments = list(payments)
        self.discount_curve = discount_curve
        self.historical_prices = dict(historical_prices or {})
        self.price_adjustment = price_adjustment
        self.survival_curve = survival_curve
        self.pricing_date_payments_excluded = pricing_date_payments_excluded
        self.index_name = index_name
        self._cache: dict[date, PriceValue] = {}

    def get_price(self, d: date) -> PriceValue:
        cached = self._cache.get(d)
        if cached is not None:
            return cached
        if d < self.as_of or (d == self.as_of and d in self.historical_prices):
            value = self._observed_price(d)
        else:
            value = PriceValue(self.projected_price(d), True)
        self._cache[d] = value
        return value

    def _observed_price(self, d: date) -> PriceValue:
        price = self.historical_prices.get(d)
        if price is None:
            raise MissingFixingError(self.index_name, d)
        if self.price_adjustment is not None:
            price = self.price_adjustment(price, d)
        return PriceValue(price, False)

    def _alive(self, cutoff: date, d: date) -> bool:
        if cutoff == d:
            return not self.pricing_date_payments_excluded
        return cutoff > d

    def outstanding_face(self, d: date) -> float:
        """Face value the holder of the asset on d is still owed."""
        face = 0.0
        for p in self.payments:
            if isinstance(p, (PrincipalExchange, DefaultSettlement)) and self._alive(p.cutoff, d):
                face += p.notional
        return face

    def projected_price(self, d: date) -> float:
        """Model price per unit of outstanding face; 0 once nothing is outstanding."""
        face = self.outstanding_face(d)
        if face <= 0.0:
            return 0.0
        disc, surv = self.discount_curve, self.survival_curve
        pv = 0.0
        for p in self.payments:
            if isinstance(p, BalanceChangeAnnotation):
                continue
            if isinstance(p, CREDIT_CONTINGENT):
                if surv is not None:
                    pv += p.amount * protection_factor(p, self.as_of, disc, surv, from_date=d)
                continue
            if not self._alive(p.cutoff, d):
                continue
            df = discount_factor(disc, self.as_of, p.pay_date)
            if surv is not None and not isinstance(p, DefaultSettlement):
                df *= discount_factor(surv, self.as_of, p.credit_risk_end)
            pv += p.amount * df
        numeraire = discount_factor(disc, self.as_of, d)
        if surv is not None:
            numeraire *= discount_factor(surv, self.as_of, d)
        return pv / numeraire / face


@dataclass
class AccruedInterestAdjustment:
    """
    Flat (clean) to full price: add the bond's accrued interest at the quote's
    settlement date. A bond settling on or after its default date is priced at zero.
    """

    bond: Bond
    price_index: AssetPriceIndex
    default_date: date | None = None

    def __call__(self, flat_price: float, d: date) -> float:
        settle = d
        if self.price_index.settlement_days != 0:
            settle = add_business_days(d, self.price_index.settlement_days, self.price_index.calendar)
        if self.default_date is not None and settle >= self.default_date:
            return 0.0
        return flat_price + self.bond.accrued_fraction(settle)
