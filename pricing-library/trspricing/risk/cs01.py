"""CS01 risk measure (bump hazard curve, reprice)."""

from __future__ import annotations

from dataclasses import dataclass

from trspricing.market import Market
from trspricing.risk.base import BaseRiskMeasure


@dataclass
class CS01Parallel(BaseRiskMeasure):
    """
    CS01: sensitivity to a parallel hazard curve shift.

    The bumped curve keeps its recovery curve and default state, so a leg on a
    defaulted asset has zero CS01.
    """

    hazard_curve_name: str
    bump_bp: float = 1.0

    @property
    def name(self) -> str:
        return f"CS01_{self.hazard_curve_name}"

    def bump(self, market: Market) -> Market:
        curve = market.curve(self.hazard_curve_name)
        return market.with_curve(self.hazard_curve_name, curve.bumped(self.bump_bp / 10000.0))
