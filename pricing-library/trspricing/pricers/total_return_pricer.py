"""Engine adapter: prices AssetReturnLeg trades from a Market snapshot."""

from __future__ import annotations

from trspricing.interfaces import Instrument
from trspricing.market import Market
from trspricing.pricers.asset_return_leg_pricer import AssetReturnLegPricer
from trspricing.pricers.base import BasePricer
from trspricing.pricers.factory import ReturnLegPricerFactory, create_default_factory
from trspricing.products.return_leg import AssetReturnLeg


class TotalReturnPricer(BasePricer):
    """
    Pricer for asset return legs inside the registry engine.

    Curves are resolved by the names stored on the leg; valuation and settlement
    dates come from the market snapshot. Invalid inputs raise ValidationError.
    """

    def __init__(self, factory: ReturnLegPricerFactory | None = None) -> None:
        self.factory = factory or create_default_factory()

    def can_price(self, instrument: Instrument) -> bool:
        return isinstance(instrument, AssetReturnLeg) and self.factory.supports(
            type(instrument.underlying)
        )

    def leg_pricer(self, leg: AssetReturnLeg, market: Market) -> AssetReturnLegPricer:
        """Build the return-leg pricer for `leg` on this market."""
        if market.as_of is None:
            raise ValueError("market.as_of is required to price a return leg")
        reference_curves = [
            market.curve(name)
            for name in (leg.projection_curve, leg.survival_curve)
            if name
        ]
        pricer = self.factory.create(
            leg,
            market.as_of,
            market.settle or market.as_of,
            market.curve(leg.discount_curve),
            reference_curves,
            leg.price_index,
            leg.notional,
        )
        pricer.ensure_valid()
        return pricer

    def npv(self, instrument: Instrument, market: Market) -> float:
        """Product PV of the leg (notional included)."""
        assert isinstance(instrument, AssetReturnLeg)
        return self.leg_pricer(instrument, market).product_pv()
