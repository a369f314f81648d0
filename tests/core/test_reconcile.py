from __future__ import annotations

import pytest

from bondex.core.curve import CurveParameters
from bondex.core.errors import NoExcessError, ReserveExceededError
from bondex.core.exchange import plan_buy
from bondex.core.fees import ZERO_FEE, FeeConfig
from bondex.core.fixed_point import UNIT
from bondex.core.ledger import initial_ledger
from bondex.core.reconcile import plan_skim, reserve_gap

PARAMS = CurveParameters(a=UNIT)
NO_FEES = FeeConfig(buy=ZERO_FEE, sell=ZERO_FEE, recipient="0x" + "fe" * 20)


def _ledger_after_buy():
    return plan_buy(PARAMS, initial_ledger(), NO_FEES, 100 * UNIT, 0).ledger


def test_gap_is_real_minus_modeled() -> None:
    ledger = _ledger_after_buy()
    modeled = ledger.modeled_reserve(PARAMS)
    assert reserve_gap(PARAMS, ledger, modeled) == 0
    assert reserve_gap(PARAMS, ledger, modeled + 7) == 7
    assert reserve_gap(PARAMS, ledger, modeled - 7) == -7


def test_gap_rejects_negative_real_reserve() -> None:
    with pytest.raises(ValueError):
        reserve_gap(PARAMS, initial_ledger(), -1)


def test_skim_after_donation_restores_alignment() -> None:
    ledger = _ledger_after_buy()
    real = ledger.collateral_in + 5 * UNIT
    skim = plan_skim(PARAMS, ledger, real)
    modeled = ledger.modeled_reserve(PARAMS)
    assert skim.excess == real - modeled
    assert skim.ledger.collateral_out == ledger.collateral_out + skim.excess
    assert skim.ledger.internal_supply == ledger.internal_supply
    assert reserve_gap(PARAMS, skim.ledger, real - skim.excess) == 0


@pytest.mark.parametrize("delta", [0, -1, -UNIT])
def test_no_excess(delta: int) -> None:
    ledger = _ledger_after_buy()
    real = ledger.modeled_reserve(PARAMS) + delta
    with pytest.raises(NoExcessError) as info:
        plan_skim(PARAMS, ledger, real)
    assert info.value.gap == delta


def test_excess_larger_than_internal_reserve() -> None:
    # A donation into an engine that has never traded cannot be booked.
    with pytest.raises(ReserveExceededError):
        plan_skim(PARAMS, initial_ledger(), UNIT)
