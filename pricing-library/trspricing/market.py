"""
Market snapshot container.

`Market` is a *simple* in-memory snapshot of the inputs needed for pricing/risk:
- Curves (discount, projection/repo, hazard), keyed by a name (e.g. "USD_DISC")
- The valuation date (`as_of`) and the settlement date for trades priced on it

Instruments stay data-only and pricing/risk functions stay pure
(market in -> number out). Curve times are year fractions from `as_of`.
"""

from __future__ import annotations

from copy import deepcopy
from datetime import date

from trspricing.interfaces import Curve


class Market:
    """
    Market snapshot: curves (by name) plus valuation and settlement dates.
    Immutable-style: with_curve returns a new Market instance.
    """

    def __init__(
        self,
        curves: dict[str, Curve] | None = None,
        as_of: date | None = None,
        settle: date | None = None,
    ) -> None:
        self.curves: dict[str, Curve] = curves.copy() if curves else {}
        self.as_of = as_of
        self.settle = settle
        if as_of is not None and settle is not None and settle < as_of:
            raise ValueError("settle must not be before as_of")

    def curve(self, name: str) -> Curve:
        """Return curve by name. Raises KeyError if not found."""
        return self.curves[name]

    def with_curve(self, name: str, curve: Curve) -> "Market":
        """Return a new Market with the given curve updated/added."""
        new_curves = deepcopy(self.curves)
        new_curves[name] = curve
        return Market(curves=new_curves, as_of=self.as_of, settle=self.settle)
