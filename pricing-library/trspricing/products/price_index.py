"""Asset price index: quoting convention, settlement conventions and history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from trspricing.dates import WEEKENDS_ONLY, BDConvention, Calendar


class QuotingConvention(Enum):
    FULL_PRICE = "full"
    FLAT_PRICE = "flat"


@dataclass
class AssetPriceIndex:
    """
    Published prices of the reference asset.

    Flat (clean) quotes settle `settlement_days` business days after the
    observation date; pricers convert them to full prices by adding the accrued
    interest at that settlement date.
    """

    name: str
    quoting_convention: QuotingConvention = QuotingConvention.FULL_PRICE
    ccy: str = "USD"
    calendar: Calendar = WEEKENDS_ONLY
    settlement_days: int = 0
    roll_convention: BDConvention = BDConvention.FOLLOWING
    historical_observations: dict[date, float] = field(default_factory=dict)

    def observation(self, d: date) -> float | None:
        return self.historical_observations.get(d)
