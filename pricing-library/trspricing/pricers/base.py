"""Base class for pricers dispatched by the registry engine."""

from __future__ import annotations

from abc import ABC, abstractmethod

from trspricing.interfaces import Instrument
from trspricing.market import Market


class BasePricer(ABC):
    """Engine-facing pricer: claims instruments via can_price() and values them via npv().

    The return-leg adapter (`TotalReturnPricer`) is the built-in implementation;
    custom pricers register alongside it.
    """

    @abstractmethod
    def can_price(self, instrument: Instrument) -> bool:
        """Return True if this pricer handles the instrument."""
        ...

    @abstractmethod
    def npv(self, instrument: Instrument, market: Market) -> float:
        """Present value of the instrument on the market snapshot."""
        ...
