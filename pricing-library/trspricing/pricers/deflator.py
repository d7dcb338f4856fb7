"""Face-value balance step function built from a bond's principal repayments."""

from __future__ import annotations

from bisect import bisect_right
from datetime import date
from typing import Iterable

from trspricing.payments import Payment, PrincipalExchange


class NotionalDeflator:
    """
    Step function date -> face balance.

    `dates[i]` is the cutoff of the i-th net repayment and `values[i]` the balance
    just before it. A query returns the value recorded at the greatest cutoff <=
    the query date, so dates on or after the last cutoff see the balance before the
    final repayment. Dates before the first cutoff see the initial face value.
    """

    def __init__(self, dates: list[date], values: list[float]) -> None:
        if len(dates) != len(values):
            raise ValueError("dates and values must have the same length")
        self.dates = dates
        self.values = values

    def __call__(self, d: date) -> float:
        i = bisect_right(self.dates, d)
        return self.values[max(i - 1, 0)]


def build_projection_deflator(
    payments: Iterable[Payment], initial_face_value: float
) -> NotionalDeflator | None:
    """
    Deflator for an amortizing bond, or None when there are fewer than two
    repayment dates (bullet bonds need no deflation).

    Repayments sharing a cutoff date are netted; net-zero dates are skipped.
    """
    by_cutoff: dict[date, float] = {}
    for p in payments:
        if isinstance(p, PrincipalExchange):
            by_cutoff[p.cutoff] = by_cutoff.get(p.cutoff, 0.0) + p.amount

    dates: list[date] = []
    values: list[float] = []
    balance = initial_face_value
    for cutoff, repayment in by_cutoff.items():
        if repayment == 0:
            continue
        dates.append(cutoff)
        values.append(balance)
        balance -= repayment

    if len(dates) <= 1:
        return None
    return NotionalDeflator(dates, values)
