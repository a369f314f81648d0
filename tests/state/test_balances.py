from __future__ import annotations

import pytest

from bondex.state import BalanceTable

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20


def test_add_subtract_and_sparse_zero() -> None:
    t = BalanceTable()
    t.add(ALICE, "COLL", 10)
    t.subtract(ALICE, "COLL", 10)
    assert t.get(ALICE, "COLL") == 0
    assert t.snapshot_items() == []


def test_overdraw_rejected() -> None:
    t = BalanceTable()
    t.add(ALICE, "COLL", 5)
    with pytest.raises(ValueError):
        t.subtract(ALICE, "COLL", 6)
    with pytest.raises(ValueError):
        t.set(ALICE, "COLL", -1)
    assert t.get(ALICE, "COLL") == 5


def test_move_is_all_or_nothing() -> None:
    t = BalanceTable()
    t.add(ALICE, "COLL", 5)
    with pytest.raises(ValueError):
        t.move(ALICE, BOB, "COLL", 6)
    t.move(ALICE, BOB, "COLL", 2)
    assert (t.get(ALICE, "COLL"), t.get(BOB, "COLL")) == (3, 2)
    assert t.total("COLL") == 5


def test_copy_is_independent_and_items_sorted() -> None:
    t = BalanceTable()
    t.add(BOB, "COLL", 1)
    t.add(ALICE, "BOND", 2)
    c = t.copy()
    c.add(ALICE, "BOND", 1)
    assert t.get(ALICE, "BOND") == 2
    assert t.snapshot_items() == [(ALICE, "BOND", 2), (BOB, "COLL", 1)]
