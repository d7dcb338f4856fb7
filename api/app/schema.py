"""GraphQL schema: return leg pricing and risk queries."""

from typing import Optional

import strawberry

from trspricing import __version__

from app.services import price_bond_return_leg
from app.types import BondReturnLegInput, MarketInput, ReturnLegResult


@strawberry.type
class Query:
    @strawberry.field
    def hello(self, name: str = "World") -> str:
        return f"Hello {name} from Total Return Pricing API!"

    @strawberry.field
    def version(self) -> str:
        return __version__

    @strawberry.field
    def price_bond_return_leg(
        self,
        leg: BondReturnLegInput,
        market: MarketInput,
        calculate_pv01: bool = False,
        pv01_curve_name: Optional[str] = None,
        pv01_bump_bp: float = 1.0,
        calculate_cs01: bool = False,
        cs01_hazard_curve_name: Optional[str] = None,
        cs01_bump_bp: float = 1.0,
    ) -> ReturnLegResult:
        """Price a bond total return leg. Optionally compute PV01 and CS01."""
        return price_bond_return_leg(
            leg=leg,
            market=market,
            calculate_pv01=calculate_pv01,
            pv01_curve_name=pv01_curve_name,
            pv01_bump_bp=pv01_bump_bp,
            calculate_cs01=calculate_cs01,
            cs01_hazard_curve_name=cs01_hazard_curve_name,
            cs01_bump_bp=cs01_bump_bp,
        )


schema = strawberry.Schema(query=Query)
