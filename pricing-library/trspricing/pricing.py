"""
Pricing entrypoint.

Most users of the library should only need `price(trade, market)`.
It delegates to a default `PricingEngine` instance that contains the pricing logic.
Advanced users can build their own engine (or pricer factory) instead.
"""

from typing import TypeAlias

from trspricing.engine import create_default_engine
from trspricing.market import Market
from trspricing.products.return_leg import AssetReturnLeg


Trade: TypeAlias = AssetReturnLeg

_default_engine = create_default_engine()


def price(trade: Trade, market: Market) -> float:
    """Return present value of trade (via default registry-based engine)."""
    return _default_engine.npv(trade, market)
