"""Random trade sequences against a market over in-memory tokens.

After every step, accepted or rejected, the ledger invariants hold and the
token balances agree with the ledger.
"""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from bondex.core.curve import CurveParameters
from bondex.core.errors import ExchangeError
from bondex.core.exchange import TradeKind
from bondex.core.fees import FeeConfig, FeeRate
from bondex.core.fixed_point import UNIT
from bondex.core.ledger import check_all
from bondex.integration.engine import PrimaryMarket
from bondex.state.tokens import InMemoryToken

ENGINE = "0x" + "e0" * 20
TRADER = "0x" + "a1" * 20
FEE_TO = "0x" + "fe" * 20
FUND = 10**9 * UNIT

actions = st.lists(
    st.tuples(
        st.sampled_from(list(TradeKind)),
        st.integers(min_value=1, max_value=500 * UNIT),
    ),
    min_size=1,
    max_size=25,
)


@settings(max_examples=60, deadline=None)
@given(steps=actions, buy_rate=st.integers(0, 99), sell_rate=st.integers(0, 99))
def test_accounting_holds_under_random_trades(steps, buy_rate: int, sell_rate: int) -> None:
    collateral = InMemoryToken("COLL", minters=[TRADER])
    issued = InMemoryToken("BOND", minters=[ENGINE])
    market = PrimaryMarket(
        address=ENGINE,
        collateral=collateral,
        issued=issued,
        curve=CurveParameters(a=UNIT),
        fees=FeeConfig(
            buy=FeeRate(rate=buy_rate, base=100),
            sell=FeeRate(rate=sell_rate, base=100),
            recipient=FEE_TO,
        ),
        is_admin=lambda who: False,
    )
    collateral.mint(TRADER, TRADER, FUND)
    collateral.approve(TRADER, ENGINE, FUND)
    issued.approve(TRADER, ENGINE, 2**255 - 1)

    prev = market.ledger
    for kind, amount in steps:
        bound = 0 if kind in (TradeKind.BUY, TradeKind.SELL) else 2**255 - 1
        try:
            market.quote(kind, amount)
            getattr(market, kind.value)(TRADER, amount, bound)
        except ExchangeError:
            assert market.ledger == prev
        ledger = market.ledger
        assert check_all(ledger) == []
        assert ledger.collateral_in >= prev.collateral_in
        assert ledger.collateral_out >= prev.collateral_out
        assert ledger.gross_issued >= prev.gross_issued
        assert ledger.net_burned >= prev.net_burned
        assert issued.total_supply() == ledger.internal_supply
        assert collateral.balance_of(ENGINE) == ledger.internal_reserve
        assert collateral.balance_of(TRADER) + collateral.balance_of(ENGINE) == FUND
        prev = ledger
