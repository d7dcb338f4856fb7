"""Total return pricing library: curves, payments, return-leg pricers, engine and risk."""

__version__ = "0.1.0"

from trspricing.config import Settings, get_settings
from trspricing.curves import DefaultStatus, HazardRateCurve, RecoveryCurve, ZeroRateCurve
from trspricing.engine import PricingEngine, create_default_engine
from trspricing.errors import (
    FieldViolation,
    MissingFixingError,
    PricingError,
    UnsupportedAssetError,
    ValidationError,
)
from trspricing.interfaces import Curve, Instrument, PriceCalculator, PriceValue, Pricer, RiskMeasure
from trspricing.market import Market
from trspricing.payments import PaymentSchedule, payments_with_default
from trspricing.pricers import (
    AssetReturnLegPricer,
    BasePricer,
    BondReturnLegPricer,
    CashflowPriceCalculator,
    ReturnLegPricerFactory,
    TotalReturnPricer,
    create_default_factory,
)
from trspricing.pricing import Trade, price
from trspricing.products import (
    Amortization,
    AssetPriceIndex,
    AssetReturnLeg,
    Bond,
    QuotingConvention,
    create_return_leg,
)
from trspricing.risk import CS01Parallel, PV01Parallel, cs01_parallel, pv01_parallel

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "Curve",
    "Instrument",
    "Pricer",
    "PriceCalculator",
    "PriceValue",
    "RiskMeasure",
    "ZeroRateCurve",
    "HazardRateCurve",
    "RecoveryCurve",
    "DefaultStatus",
    "PricingEngine",
    "create_default_engine",
    "Market",
    "PaymentSchedule",
    "payments_with_default",
    "BasePricer",
    "AssetReturnLegPricer",
    "BondReturnLegPricer",
    "CashflowPriceCalculator",
    "ReturnLegPricerFactory",
    "TotalReturnPricer",
    "create_default_factory",
    "price",
    "Trade",
    "Amortization",
    "AssetPriceIndex",
    "AssetReturnLeg",
    "Bond",
    "QuotingConvention",
    "create_return_leg",
    "PV01Parallel",
    "CS01Parallel",
    "pv01_parallel",
    "cs01_parallel",
    "PricingError",
    "MissingFixingError",
    "UnsupportedAssetError",
    "ValidationError",
    "FieldViolation",
]
