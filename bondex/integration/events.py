"""
Structured records emitted by the primary market for off-chain observers.

Records are immutable and appended to the engine's event log only when the
operation that produced them commits.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, Union

from ..state.balances import Address


@dataclass(frozen=True)
class Bought:
    name: ClassVar[str] = "Bought"

    buyer: Address
    to: Address
    collateral_used: int
    gross_out: int
    fee: int
    net_out: int
    price_before: int
    price_after: int


@dataclass(frozen=True)
class Sold:
    name: ClassVar[str] = "Sold"

    seller: Address
    to: Address
    gross_in: int
    fee: int
    burned: int
    collateral_out: int
    price_before: int
    price_after: int


@dataclass(frozen=True)
class Skimmed:
    name: ClassVar[str] = "Skimmed"

    to: Address
    amount: int


@dataclass(frozen=True)
class FeesUpdated:
    name: ClassVar[str] = "FeesUpdated"

    buy_rate: int
    buy_base: int
    sell_rate: int
    sell_base: int
    fee_recipient: Address


Event = Union[Bought, Sold, Skimmed, FeesUpdated]


def event_to_dict(event: Event) -> Dict[str, Any]:
    """JSON-friendly view: `{"event": <name>, **fields}`."""
    return {"event": event.name, **asdict(event)}
