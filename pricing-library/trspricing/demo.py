"""Demo: price a bond total return leg (plain, amortizing, credit-risky) with risks."""

from datetime import date

from trspricing.curves import HazardRateCurve, RecoveryCurve, ZeroRateCurve
from trspricing.market import Market
from trspricing.pricers import create_default_factory
from trspricing.pricing import price
from trspricing.products import Amortization, AssetReturnLeg, Bond
from trspricing.risk import cs01_parallel, pv01_parallel


def main() -> None:
    pillars = [0.5, 1.0, 2.0, 5.0, 10.0]
    usd_curve = ZeroRateCurve(
        name="USD_DISC", pillars=pillars, zero_rates_cc=[0.045, 0.043, 0.040, 0.038, 0.037]
    )
    hazard_curve = HazardRateCurve(
        name="ISSUER_HAZ",
        pillars=pillars,
        hazard_rates=[0.01] * 5,
        recovery_curve=RecoveryCurve(recovery_rate=0.4),
    )
    as_of = date(2016, 2, 9)
    market = Market(
        curves={"USD_DISC": usd_curve, "ISSUER_HAZ": hazard_curve},
        as_of=as_of,
        settle=as_of,
    )

    bond = Bond(
        effective=date(2015, 3, 20),
        maturity=date(2025, 9, 7),
        coupon=0.02,
        description="ACME 2% 2025",
    )
    amortizing = Bond(
        effective=date(2015, 3, 20),
        maturity=date(2025, 9, 7),
        coupon=0.02,
        amortizations=[Amortization(date(y, 9, 1), 0.05) for y in range(2016, 2025)],
        description="ACME 2% 2025 amortizing",
    )

    # 1) Default-free bullet bond, one-year leg with quarterly resets
    leg = AssetReturnLeg(
        underlying=bond,
        effective=as_of,
        maturity=date(2017, 2, 9),
        value_dates=[date(2016, 5, 9), date(2016, 8, 9), date(2016, 11, 9)],
        discount_curve="USD_DISC",
        notional=10_000_000,
    )
    pv_leg = price(leg, market)
    pv01_leg = pv01_parallel(leg, market, "USD_DISC", bump_bp=1.0)

    # 2) Amortizing bond, credit risky
    risky_leg = AssetReturnLeg(
        underlying=amortizing,
        effective=as_of,
        maturity=date(2018, 2, 9),
        discount_curve="USD_DISC",
        survival_curve="ISSUER_HAZ",
        notional=10_000_000,
    )
    pv_risky = price(risky_leg, market)
    cs01_risky = cs01_parallel(risky_leg, market, "ISSUER_HAZ", bump_bp=1.0)

    pricer = create_default_factory().create(
        risky_leg, as_of, as_of, usd_curve, [hazard_curve], notional=risky_leg.notional
    )

    print("=== Total Return Demo ===\n")
    print(f"Market: USD_DISC, ISSUER_HAZ (R=40%), as of {as_of}\n")
    print("1) Bullet bond return leg (1Y, quarterly resets, 10M)")
    print(f"   PV     = {pv_leg:,.2f}")
    print(f"   PV01   = {pv01_leg:,.2f}\n")
    print("2) Amortizing bond return leg with credit risk (2Y, 10M)")
    print(f"   PV            = {pv_risky:,.2f}")
    print(f"   CS01          = {cs01_risky:,.2f}")
    print(f"   Initial price = {pricer.initial_price:.6f}")
    print(f"   Bond notional = {pricer.bond_notional:,.2f}")
    print(f"   Payments      = {len(pricer.get_payment_schedule(as_of))}\n")
    print("Done.")


if __name__ == "__main__":
    main()
