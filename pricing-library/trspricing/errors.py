"""Exception types raised by the return-leg pricers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


class PricingError(Exception):
    """Base class for pricing failures."""


class MissingFixingError(PricingError):
    """A price is required for a past date but no observation exists."""

    def __init__(self, index_name: str, fixing_date: date) -> None:
        self.index_name = index_name
        self.date = fixing_date
        name = index_name or "asset price"
        super().__init__(f"Missing historical {name} price on {fixing_date.isoformat()}")


class UnsupportedAssetError(PricingError):
    """No return-leg pricer is registered for the underlying asset type."""

    def __init__(self, asset_type: type) -> None:
        self.asset_type = asset_type
        super().__init__(
            f"No return leg pricer registered for underlying asset type "
            f"{asset_type.__name__}. Register one with factory.register(...)."
        )


@dataclass(frozen=True)
class FieldViolation:
    """One configuration problem found by a validate() pass."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationError(PricingError):
    """Pricer inputs failed validation; carries every violation found."""

    def __init__(self, violations: list[FieldViolation] | tuple[FieldViolation, ...]) -> None:
        self.violations = tuple(violations)
        details = "; ".join(str(v) for v in self.violations)
        super().__init__(f"Invalid return leg inputs: {details}")
