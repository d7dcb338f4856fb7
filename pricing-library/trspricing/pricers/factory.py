"""
Return-leg pricer factory: explicit registry from underlying asset type to a
pricer builder.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Sequence

from trspricing.errors import UnsupportedAssetError
from trspricing.interfaces import Curve
from trspricing.pricers.asset_return_leg_pricer import AssetReturnLegPricer
from trspricing.products.price_index import AssetPriceIndex
from trspricing.products.return_leg import AssetReturnLeg

logger = logging.getLogger(__name__)

PricerBuilder = Callable[..., AssetReturnLegPricer]


class ReturnLegPricerFactory:
    """
    Registry-based factory.

    Builders are looked up by the exact type of the leg's underlying asset, then
    by its base classes, so a registration for a base class covers subclasses.
    """

    def __init__(self) -> None:
        self._builders: dict[type, PricerBuilder] = {}

    def register(self, asset_type: type, builder: PricerBuilder) -> None:
        """Register (or replace) the builder for an asset type."""
        self._builders[asset_type] = builder

    def supports(self, asset_type: type) -> bool:
        return self._find(asset_type) is not None

    def _find(self, asset_type: type) -> PricerBuilder | None:
        for klass in asset_type.__mro__:
            builder = self._builders.get(klass)
            if builder is not None:
                return builder
        return None

    def create(
        self,
        leg: AssetReturnLeg,
        as_of: date,
        settle: date,
        discount_curve: Curve,
        reference_curves: Sequence[Curve] = (),
        price_index: AssetPriceIndex | None = None,
        notional: float | None = None,
    ) -> AssetReturnLegPricer:
        asset_type = type(leg.underlying)
        builder = self._find(asset_type)
        if builder is None:
            raise UnsupportedAssetError(asset_type)
        pricer = builder(leg, as_of, settle, discount_curve, reference_curves, price_index, notional)
        logger.info(
            "created %s for %s return leg %s -> %s",
            type(pricer).__name__, asset_type.__name__, leg.effective, leg.maturity,
        )
        return pricer


def create_default_factory() -> ReturnLegPricerFactory:
    """Factory with all built-in return-leg pricers registered."""
    from trspricing.pricers.bond_return_leg_pricer import BondReturnLegPricer
    from trspricing.products.bond import Bond

    factory = ReturnLegPricerFactory()
    factory.register(Bond, BondReturnLegPricer.from_reference_curves)
    return factory
