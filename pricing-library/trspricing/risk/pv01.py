"""Parallel PV01 risk measure (bump-and-reprice)."""

from __future__ import annotations

from dataclasses import dataclass

from trspricing.market import Market
from trspricing.risk.base import BaseRiskMeasure


@dataclass
class PV01Parallel(BaseRiskMeasure):
    """
    Parallel PV01: sensitivity to a parallel shift of rate curves.

    `also_bump` names further curves shifted together with `curve_name`, e.g. the
    repo curve used for bond price projection alongside the discount curve.
    """

    curve_name: str
    bump_bp: float = 1.0
    also_bump: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return "PV01_" + "+".join((self.curve_name, *self.also_bump))

    def bump(self, market: Market) -> Market:
        shift = self.bump_bp / 10000.0
        bumped_market = market
        for curve_name in (self.curve_name, *self.also_bump):
            bumped_market = bumped_market.with_curve(
                curve_name, market.curve(curve_name).bumped(shift)
            )
        return bumped_market
