"""Products: bond, asset price index and asset return leg."""

from trspricing.products.bond import Amortization, Bond
from trspricing.products.price_index import AssetPriceIndex, QuotingConvention
from trspricing.products.return_leg import AssetReturnLeg, create_return_leg

__all__ = [
    "Amortization",
    "AssetPriceIndex",
    "AssetReturnLeg",
    "Bond",
    "QuotingConvention",
    "create_return_leg",
]
