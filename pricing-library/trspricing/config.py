"""
Runtime settings read from the environment.

Only a handful of knobs exist; everything else is explicit in the pricer inputs.
Values are read once and memoized, call `get_settings.cache_clear()` after
changing the environment (tests do this through monkeypatch).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """
    Library settings.

    - `log_level`: level used by the API process when configuring logging.
    - `curve_time_basis`: days per year when turning dates into curve times.
    - `tolerance`: threshold for treating a scale factor as exactly 1.
    """

    log_level: str = "INFO"
    curve_time_basis: float = 365.0
    tolerance: float = 1e-15

    @classmethod
    def from_env(cls) -> "Settings":
        basis = _float_env("TRSPRICING_CURVE_TIME_BASIS", 365.0)
        if basis <= 0:
            raise ValueError("TRSPRICING_CURVE_TIME_BASIS must be positive")
        return cls(
            log_level=os.environ.get("TRSPRICING_LOG_LEVEL", "INFO").upper(),
            curve_time_basis=basis,
            tolerance=_float_env("TRSPRICING_TOLERANCE", 1e-15),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings (read from the environment on first call)."""
    return Settings.from_env()


def almost_equal(a: float, b: float) -> bool:
    """True when a and b agree within the configured relative tolerance."""
    tol = get_settings().tolerance
    return abs(a - b) <= tol * max(1.0, abs(a), abs(b))
