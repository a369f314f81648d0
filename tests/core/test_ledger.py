"""Ledger transitions, invariants and serialisation."""

from dataclasses import FrozenInstanceError, replace

import pytest

from bondex.core.curve import CurveParameters, area_of
from bondex.core.errors import LedgerInvariantError
from bondex.core.fixed_point import UNIT
from bondex.core.ledger import (
    INVARIANT_REGISTRY,
    STATE_VAR_NAMES,
    Ledger,
    check_all,
    initial_ledger,
    ledger_from_dict,
    ledger_to_dict,
    record_buy,
    record_sell,
    record_skim,
    require_invariants,
)


class TestInvariants:
    def test_initial_ledger_passes_all(self):
        assert check_all(initial_ledger()) == []

    def test_registry_has_4_invariants(self):
        assert len(INVARIANT_REGISTRY) == 4

    def test_collateral_out_above_in(self):
        s = replace(initial_ledger(), collateral_in=5, collateral_out=6)
        assert "inv_collateral_out_le_in" in check_all(s)

    def test_burned_above_issued(self):
        s = replace(initial_ledger(), gross_issued=5, net_burned=6)
        assert check_all(s) == ["inv_burned_le_issued"]

    def test_negative_counter(self):
        s = replace(initial_ledger(), collateral_in=-1, collateral_out=-1)
        assert "inv_counters_nonneg" in check_all(s)

    def test_non_int_counter_short_circuits(self):
        s = replace(initial_ledger(), gross_issued=1.5)
        assert check_all(s) == ["inv_counters_are_ints"]

    def test_require_invariants_raises_with_ids(self):
        s = replace(initial_ledger(), collateral_in=1, collateral_out=2)
        with pytest.raises(LedgerInvariantError) as info:
            require_invariants(s)
        assert info.value.violations == ["inv_collateral_out_le_in"]


class TestDerived:
    def test_internal_quantities(self):
        s = Ledger(collateral_in=10, collateral_out=3, gross_issued=8, net_burned=2)
        assert s.internal_supply == 6
        assert s.internal_reserve == 7

    def test_modeled_reserve(self):
        params = CurveParameters(a=UNIT)
        s = Ledger(gross_issued=9 * UNIT, net_burned=UNIT)
        assert s.modeled_reserve(params) == area_of(params, 8 * UNIT)

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            initial_ledger().collateral_in = 1  # type: ignore[misc]


class TestTransitions:
    def test_buy_then_sell(self):
        s = record_buy(initial_ledger(), 100, 28)
        assert s == Ledger(collateral_in=100, gross_issued=28)
        s = record_sell(s, 40, 10)
        assert s == Ledger(collateral_in=100, collateral_out=40, gross_issued=28, net_burned=10)

    def test_counters_only_grow(self):
        s0 = record_buy(initial_ledger(), 100, 28)
        s1 = record_sell(s0, 40, 10)
        for name in STATE_VAR_NAMES:
            assert getattr(s1, name) >= getattr(s0, name)

    def test_sell_beyond_reserve(self):
        with pytest.raises(LedgerInvariantError):
            record_sell(record_buy(initial_ledger(), 10, 10), 11, 0)

    def test_burn_beyond_issued(self):
        with pytest.raises(LedgerInvariantError):
            record_sell(record_buy(initial_ledger(), 10, 10), 0, 11)

    def test_skim_books_collateral_out(self):
        s = record_skim(record_buy(initial_ledger(), 10, 10), 4)
        assert s.collateral_out == 4
        assert s.gross_issued == 10

    @pytest.mark.parametrize("fn, args", [(record_buy, (-1, 0)), (record_sell, (0, -1)), (record_skim, (-1,))])
    def test_negative_deltas(self, fn, args):
        with pytest.raises(ValueError):
            fn(initial_ledger(), *args)

    def test_non_int_delta(self):
        with pytest.raises(TypeError):
            record_buy(initial_ledger(), 1.0, 1)


class TestSerialisation:
    def test_round_trip(self):
        s = Ledger(collateral_in=10**30, collateral_out=7, gross_issued=12345, net_burned=45)
        d = ledger_to_dict(s)
        assert list(d) == list(STATE_VAR_NAMES)
        assert ledger_from_dict(d) == s

    def test_missing_field(self):
        d = ledger_to_dict(initial_ledger())
        del d["net_burned"]
        with pytest.raises(KeyError):
            ledger_from_dict(d)

    def test_wrong_type(self):
        d = ledger_to_dict(initial_ledger())
        d["collateral_in"] = True
        with pytest.raises(TypeError):
            ledger_from_dict(d)

    def test_invalid_state_rejected(self):
        d = ledger_to_dict(initial_ledger())
        d["collateral_out"] = 1
        with pytest.raises(LedgerInvariantError):
            ledger_from_dict(d)
