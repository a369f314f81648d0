"""
Internal accounting ledger for the primary market.

Four monotonic counters; only their differences can shrink:

- `collateral_in` (s1) / `collateral_out` (s2): gross collateral that entered /
  left through trades or skims,
- `gross_issued` (x1) / `net_burned` (x2): issued asset minted (fee portion
  included) / issued asset destroyed (fee portion excluded).

Transitions return a new `Ledger` and never mutate. `require_invariants()` is
the backstop every transition runs before returning.

Round-trip property (tested): `ledger_from_dict(ledger_to_dict(l)) == l`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping

from .curve import CurveParameters, area_of
from .errors import LedgerInvariantError


@dataclass(frozen=True)
class Ledger:
    collateral_in: int = 0
    collateral_out: int = 0
    gross_issued: int = 0
    net_burned: int = 0

    @property
    def internal_supply(self) -> int:
        return max(self.gross_issued - self.net_burned, 0)

    @property
    def internal_reserve(self) -> int:
        return max(self.collateral_in - self.collateral_out, 0)

    def modeled_reserve(self, params: CurveParameters) -> int:
        """Collateral the curve says should back the internal supply."""
        return area_of(params, self.internal_supply)


STATE_VAR_NAMES: tuple[str, ...] = tuple(Ledger.__dataclass_fields__)


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

def inv_counters_are_ints(s: Ledger) -> bool:
    return all(
        isinstance(getattr(s, name), int) and not isinstance(getattr(s, name), bool)
        for name in STATE_VAR_NAMES
    )


def inv_counters_nonneg(s: Ledger) -> bool:
    return all(getattr(s, name) >= 0 for name in STATE_VAR_NAMES)


def inv_collateral_out_le_in(s: Ledger) -> bool:
    return s.collateral_in >= s.collateral_out


def inv_burned_le_issued(s: Ledger) -> bool:
    return s.gross_issued >= s.net_burned


INVARIANT_REGISTRY: dict[str, Callable[[Ledger], bool]] = {
    "inv_counters_are_ints": inv_counters_are_ints,
    "inv_counters_nonneg": inv_counters_nonneg,
    "inv_collateral_out_le_in": inv_collateral_out_le_in,
    "inv_burned_le_issued": inv_burned_le_issued,
}


def check_all(ledger: Ledger) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    if not inv_counters_are_ints(ledger):
        return ["inv_counters_are_ints"]
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(ledger)
    ]


def require_invariants(ledger: Ledger) -> Ledger:
    violations = check_all(ledger)
    if violations:
        raise LedgerInvariantError(violations)
    return ledger


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def _require_delta(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def initial_ledger() -> Ledger:
    return Ledger()


def record_buy(ledger: Ledger, collateral_in: int, gross_issued: int) -> Ledger:
    """`s1 += collateral_in; x1 += gross_issued`."""
    _require_delta("collateral_in", collateral_in)
    _require_delta("gross_issued", gross_issued)
    return require_invariants(
        replace(
            ledger,
            collateral_in=ledger.collateral_in + collateral_in,
            gross_issued=ledger.gross_issued + gross_issued,
        )
    )


def record_sell(ledger: Ledger, collateral_out: int, burned: int) -> Ledger:
    """`s2 += collateral_out; x2 += burned`."""
    _require_delta("collateral_out", collateral_out)
    _require_delta("burned", burned)
    return require_invariants(
        replace(
            ledger,
            collateral_out=ledger.collateral_out + collateral_out,
            net_burned=ledger.net_burned + burned,
        )
    )


def record_skim(ledger: Ledger, amount: int) -> Ledger:
    """Harvested surplus is booked as a synthetic withdrawal: `s2 += amount`."""
    _require_delta("amount", amount)
    return require_invariants(
        replace(ledger, collateral_out=ledger.collateral_out + amount)
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def ledger_to_dict(ledger: Ledger) -> dict[str, int]:
    return {name: getattr(ledger, name) for name in STATE_VAR_NAMES}


def ledger_from_dict(d: Mapping[str, Any]) -> Ledger:
    """Deserialize a dict to a Ledger. Raises KeyError on missing fields."""
    kwargs: dict[str, int] = {}
    for name in STATE_VAR_NAMES:
        val = d[name]
        if isinstance(val, bool) or not isinstance(val, int):
            raise TypeError(f"ledger field {name!r} must be int, got {type(val).__name__}")
        kwargs[name] = int(val)
    return require_invariants(Ledger(**kwargs))
