from __future__ import annotations

import json
from dataclasses import FrozenInstanceError

import pytest

from bondex.integration.events import Bought, FeesUpdated, Skimmed, Sold, event_to_dict


def test_event_to_dict_tags_the_record() -> None:
    assert event_to_dict(Skimmed(to="0xab", amount=5)) == {"event": "Skimmed", "to": "0xab", "amount": 5}


@pytest.mark.parametrize(
    "event",
    [
        Bought(buyer="0xa", to="0xb", collateral_used=1, gross_out=2, fee=0, net_out=2, price_before=0, price_after=3),
        Sold(seller="0xa", to="0xa", gross_in=2, fee=1, burned=1, collateral_out=1, price_before=3, price_after=1),
        FeesUpdated(buy_rate=1, buy_base=100, sell_rate=2, sell_base=100, fee_recipient="0xf"),
    ],
)
def test_records_are_json_friendly(event) -> None:
    d = event_to_dict(event)
    assert d["event"] == type(event).__name__
    assert "name" not in d
    assert json.loads(json.dumps(d)) == d


def test_records_are_frozen() -> None:
    e = Skimmed(to="0xab", amount=5)
    with pytest.raises(FrozenInstanceError):
        e.amount = 6  # type: ignore[misc]
