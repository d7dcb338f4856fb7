"""Pricer implementations: return-leg pricers, price calculators and the engine adapter."""

from trspricing.pricers.asset_return_leg_pricer import AssetReturnLegPricer
from trspricing.pricers.base import BasePricer
from trspricing.pricers.bond_return_leg_pricer import BondReturnLegPricer
from trspricing.pricers.deflator import NotionalDeflator, build_projection_deflator
from trspricing.pricers.factory import ReturnLegPricerFactory, create_default_factory
from trspricing.pricers.price_calculator import (
    AccruedInterestAdjustment,
    CashflowPriceCalculator,
)
from trspricing.pricers.total_return_pricer import TotalReturnPricer

__all__ = [
    "AccruedInterestAdjustment",
    "AssetReturnLegPricer",
    "BasePricer",
    "BondReturnLegPricer",
    "CashflowPriceCalculator",
    "NotionalDeflator",
    "ReturnLegPricerFactory",
    "TotalReturnPricer",
    "build_projection_deflator",
    "create_default_factory",
]
