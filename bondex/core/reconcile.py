"""
Dust reconciliation: align modeled reserve with real custody.

`real - modeled` is positive after direct donations or when curve rounding
leaves residue behind. Only a positive surplus is ever harvested; a deficit is
reported through `reserve_gap()` and never patched here.
"""

from __future__ import annotations

from dataclasses import dataclass

from .curve import CurveParameters
from .errors import NoExcessError, ReserveExceededError
from .ledger import Ledger, record_skim


@dataclass(frozen=True)
class SkimPlan:
    excess: int
    ledger: Ledger


def reserve_gap(params: CurveParameters, ledger: Ledger, real_reserve: int) -> int:
    """Signed `real - modeled` reserve difference."""
    if real_reserve < 0:
        raise ValueError(f"real_reserve must be non-negative: {real_reserve}")
    return real_reserve - ledger.modeled_reserve(params)


def plan_skim(params: CurveParameters, ledger: Ledger, real_reserve: int) -> SkimPlan:
    """
    Harvest `real - modeled`, booked as `collateral_out += excess`.

    Raises:
        NoExcessError: the gap is zero or negative.
        ReserveExceededError: booking the excess would push `collateral_out`
            above `collateral_in`.
    """
    gap = reserve_gap(params, ledger, real_reserve)
    if gap <= 0:
        raise NoExcessError(gap)
    if gap > ledger.collateral_in - ledger.collateral_out:
        raise ReserveExceededError(
            f"excess {gap} exceeds internal reserve {ledger.internal_reserve}"
        )
    return SkimPlan(excess=gap, ledger=record_skim(ledger, gap))
