"""
Pricing engine: computes NPV for instruments given a market snapshot.

Design intent:
- Instruments/products are **data only** (no market access, no pricing methods).
- This engine uses a **registry of pricers** for dispatch, so new leg types or
  alternative models plug in without touching engine code.
"""

from __future__ import annotations

import logging

from trspricing.interfaces import Instrument
from trspricing.market import Market
from trspricing.pricers import BasePricer

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Registry-based pricing engine.

    Pricers are dispatched based on can_price() checks; first matching pricer wins.
    """

    def __init__(self) -> None:
        self._pricers: list[BasePricer] = []

    def register(self, pricer: BasePricer) -> None:
        """Register a pricer for dispatch (appended: earlier registrations win)."""
        self._pricers.append(pricer)

    def npv(self, instrument: Instrument, market: Market) -> float:
        """Dispatch to the first pricer that claims the instrument."""
        for pricer in self._pricers:
            if pricer.can_price(instrument):
                logger.debug(
                    "pricing %s with %s as of %s",
                    type(instrument).__name__, type(pricer).__name__, market.as_of,
                )
                return pricer.npv(instrument, market)
        raise ValueError(
            f"No pricer registered for {type(instrument).__name__}. "
            "Register a pricer with engine.register(pricer)."
        )


def create_default_engine() -> PricingEngine:
    """Engine with the return-leg pricer (all registered asset types) installed."""
    from trspricing.pricers import TotalReturnPricer

    engine = PricingEngine()
    engine.register(TotalReturnPricer())
    return engine
