"""
Interest-rate and credit curve primitives.

- Times are **year fractions** measured from the valuation date
  (see `trspricing.dates.curve_time` for the date -> time mapping).
- Rates are **continuously compounded zero rates** (ZeroRateCurve).
- Interpolation is **linear in zero rates** between pillar points.
- HazardRateCurve: `df(t)` returns survival probability S(t), not discount factor.
  It also carries the credit state of the reference entity: an optional recovery
  curve and an optional default date with its tri-state default status.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum

from trspricing.dates import curve_time
from trspricing.interfaces import Curve


@dataclass
class ZeroRateCurve:
    """
    Zero rate curve (continuously compounded) with linear interpolation.

    - **Pillars** are increasing times (year fractions) where the curve is defined.
    - `zero_rates_cc[i]` is the CC zero rate at `pillars[i]`.
    - Flat extrapolation on both sides.

    Implements Curve protocol structurally (no explicit inheritance).
    """

    name: str
    pillars: list[float]
    zero_rates_cc: list[float]
    t0: float = 0.0

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if len(self.pillars) != len(self.zero_rates_cc):
            raise ValueError("pillars and zero_rates_cc must have the same length")
        for i in range(1, len(self.pillars)):
            if self.pillars[i] <= self.pillars[i - 1]:
                raise ValueError("pillars must be strictly increasing")

    def zero_rate_cc(self, t: float) -> float:
        """
        Continuously compounded zero rate at time t (year-fraction).
        Linear interpolation in zero rates. t must be >= 0.
        """
        if t < 0:
            raise ValueError("t must be >= 0")
        if not self.pillars:
            raise ValueError("curve has no pillars")
        if t <= self.pillars[0]:
            return self.zero_rates_cc[0]
        if t >= self.pillars[-1]:
            return self.zero_rates_cc[-1]
        for i in range(len(self.pillars) - 1):
            if self.pillars[i] <= t <= self.pillars[i + 1]:
                t0, t1 = self.pillars[i], self.pillars[i + 1]
                r0, r1 = self.zero_rates_cc[i], self.zero_rates_cc[i + 1]
                return r0 + (r1 - r0) * (t - t0) / (t1 - t0)
        return self.zero_rates_cc[-1]

    def df(self, t: float) -> float:
        r"""
        Discount factor to time t.

        With CC zero rate r(t), the discount factor is:
        DF(t) = exp(-r(t)*t).
        """
        r = self.zero_rate_cc(t)
        return math.exp(-r * t)

    def bumped(self, bump: float) -> "ZeroRateCurve":
        """
        Return a new curve with a *parallel* additive shift to all zero rates.

        `bump` is expressed in absolute rate terms (e.g. 1bp = 0.0001).
        """
        return replace(self, zero_rates_cc=[r + bump for r in self.zero_rates_cc],
                       pillars=list(self.pillars))


class DefaultStatus(Enum):
    """Default state of a reference entity relative to the valuation date."""

    NOT_DEFAULTED = "not_defaulted"
    HAS_DEFAULTED = "has_defaulted"
    WILL_DEFAULT = "will_default"


@dataclass(frozen=True)
class RecoveryCurve:
    """
    Flat recovery assumption for a reference entity.

    `jump_date` is the date the recovery is settled after a default; when it is
    None the settlement happens on the default date itself.
    """

    recovery_rate: float
    jump_date: date | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.recovery_rate <= 1.0:
            raise ValueError("recovery_rate must be in [0, 1]")

    def interpolate(self, d: date) -> float:
        """Recovery rate applying to a default on date d."""
        return self.recovery_rate


@dataclass
class HazardRateCurve:
    """
    Hazard rate curve with piecewise-constant hazard between pillars.

    Implements Curve protocol structurally. Here `df(t)` returns **survival probability**
    S(t) = exp(-integral of hazard), not a discount factor.
    - pillars[i], hazard_rates[i]: hazard is hazard_rates[i] in segment [prev, pillars[i]]
      (prev=0 for first segment, then pillars[i-1]).
    - bumped(bump) adds `bump` to all hazard rates (absolute; 1bp = 0.0001) and keeps
      the recovery curve and default state.
    - `default_date`/`defaulted` record a known or hypothetical default; build them
      with `with_default` so the status is consistent with the valuation date.
    """

    name: str
    pillars: list[float]
    hazard_rates: list[float]
    t0: float = 0.0
    recovery_curve: RecoveryCurve | None = None
    default_date: date | None = None
    defaulted: DefaultStatus = DefaultStatus.NOT_DEFAULTED

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if len(self.pillars) != len(self.hazard_rates):
            raise ValueError("pillars and hazard_rates must have the same length")
        for i in range(1, len(self.pillars)):
            if self.pillars[i] <= self.pillars[i - 1]:
                raise ValueError("pillars must be strictly increasing")
        if self.default_date is None and self.defaulted is not DefaultStatus.NOT_DEFAULTED:
            raise ValueError("defaulted status requires a default_date")
        if self.default_date is not None and self.defaulted is DefaultStatus.NOT_DEFAULTED:
            raise ValueError("default_date set but status is NOT_DEFAULTED; use with_default()")

    def hazard_rate(self, t: float) -> float:
        """Piecewise-constant hazard at time t. Flat extrapolation beyond endpoints."""
        if t < 0:
            raise ValueError("t must be >= 0")
        if not self.pillars:
            raise ValueError("curve has no pillars")
        if t <= self.pillars[0]:
            return self.hazard_rates[0]
        if t >= self.pillars[-1]:
            return self.hazard_rates[-1]
        for i in range(len(self.pillars) - 1):
            if self.pillars[i] <= t <= self.pillars[i + 1]:
                return self.hazard_rates[i]
        return self.hazard_rates[-1]

    def df(self, t: float) -> float:
        """
        Survival probability S(t) = exp(-integral_0^t h(u) du).
        Implements Curve protocol: for HazardRateCurve, df(t) means S(t).
        """
        if t <= 0:
            return 1.0
        if not self.pillars:
            raise ValueError("curve has no pillars")
        integral = 0.0
        prev = self.t0
        for i in range(len(self.pillars)):
            t_end = min(self.pillars[i], t)
            if t_end > prev:
                integral += self.hazard_rates[i] * (t_end - prev)
            prev = self.pillars[i]
            if prev >= t:
                break
        if t > self.pillars[-1]:
            integral += self.hazard_rates[-1] * (t - self.pillars[-1])
        return math.exp(-integral)

    def bumped(self, bump: float) -> "HazardRateCurve":
        """Return new curve with parallel additive shift to all hazard rates."""
        return replace(self, hazard_rates=[h + bump for h in self.hazard_rates],
                       pillars=list(self.pillars))

    def with_default(self, default_date: date, as_of: date) -> "HazardRateCurve":
        """
        Copy of this curve flagged as defaulted on `default_date`.

        A default on or before `as_of` has happened (HAS_DEFAULTED); a later one is
        a hypothetical default still to come (WILL_DEFAULT).
        """
        status = (
            DefaultStatus.HAS_DEFAULTED if default_date <= as_of
            else DefaultStatus.WILL_DEFAULT
        )
        return replace(self, default_date=default_date, defaulted=status)


def discount_factor(curve: Curve, as_of: date, d: date) -> float:
    """Curve value (DF or survival) at a date; dates on/before as_of map to t=0."""
    return curve.df(max(curve_time(as_of, d), 0.0))


def forward_discount_factor(curve: Curve, as_of: date, start: date, end: date) -> float:
    """D(start, end) = df(end) / df(start) with both legs clamped at as_of."""
    return discount_factor(curve, as_of, end) / discount_factor(curve, as_of, start)
