"""Base class for bump-and-reprice risk measures."""

from __future__ import annotations

from abc import ABC, abstractmethod

from trspricing.interfaces import Instrument
from trspricing.market import Market
from trspricing.pricing import price


class BaseRiskMeasure(ABC):
    """
    Risk measure defined by a market shift: value = PV(shifted) - PV(base).

    Subclasses only say how the market is shifted.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name."""
        ...

    @abstractmethod
    def bump(self, market: Market) -> Market:
        """Copy of the market with this measure's shift applied."""
        ...

    def compute(self, instrument: Instrument, market: Market) -> float:
        """PV(bumped) - PV(base)."""
        return price(instrument, self.bump(market)) - price(instrument, market)
