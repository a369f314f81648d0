"""
Trade quoting and planning (functional core of the primary market).

Each trade kind is a pure function of (curve, ledger, fees, amount):

1. `quote_*` derives the new curve position and the fee split.
2. `plan_*` checks the caller's slippage bound and computes the post-trade
   ledger.

Nothing here touches tokens. The engine (`bondex.integration.engine`) commits
a plan and then performs the token movements it describes, so every check and
every state delta is known before the first external call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Callable

from .curve import CurveParameters, area_of, marginal_cost, marginal_refund, price_at_supply, supply_from_area
from .errors import InvalidAmountError, ReserveExceededError, SlippageError, SupplyExceededError
from .fees import FeeConfig, split_forward, split_reverse
from .ledger import Ledger, record_buy, record_sell


@unique
class Side(Enum):
    BUY = "buy"
    SELL = "sell"


@unique
class TradeKind(Enum):
    """Caller fixes the first quantity; the bound applies to the second."""

    BUY = "buy"                # collateral in -> min net out
    BUY_EXACT = "buy_exact"    # net out -> max collateral in
    SELL = "sell"              # gross in -> min collateral out
    SELL_EXACT = "sell_exact"  # collateral out -> max gross in


@dataclass(frozen=True)
class Quote:
    """
    Ephemeral trade quote, never persisted.

    For buys `gross`/`fee`/`net` are issued-asset amounts minted (total, to the
    fee recipient, to the buyer) and `collateral` is what the buyer pays. For
    sells `gross` is what the seller hands over, `fee` is transferred to the fee
    recipient, `net` is burned, and `collateral` is paid out.
    """

    side: Side
    collateral: int
    gross: int
    fee: int
    net: int
    price_before: int
    price_after: int


@dataclass(frozen=True)
class TradePlan:
    kind: TradeKind
    quote: Quote
    ledger: Ledger


def _require_positive(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmountError(f"{name} must be an int")
    if value <= 0:
        raise InvalidAmountError(f"{name} must be positive: {value}")


def _require_bound(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmountError(f"{name} must be an int")
    if value < 0:
        raise InvalidAmountError(f"{name} must be non-negative: {value}")


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------

def quote_buy(params: CurveParameters, ledger: Ledger, fees: FeeConfig, collateral_in: int) -> Quote:
    _require_positive("collateral_in", collateral_in)
    x = ledger.internal_supply
    x_new = supply_from_area(params, area_of(params, x) + collateral_in)
    gross = x_new - x
    if gross <= 0:
        raise InvalidAmountError(f"collateral_in too small to issue supply: {collateral_in}")
    split = split_forward(gross, fees.buy)
    return Quote(
        side=Side.BUY,
        collateral=collateral_in,
        gross=gross,
        fee=split.fee,
        net=split.net,
        price_before=price_at_supply(params, x),
        price_after=price_at_supply(params, x_new),
    )


def quote_buy_exact(params: CurveParameters, ledger: Ledger, fees: FeeConfig, net_wanted: int) -> Quote:
    _require_positive("net_wanted", net_wanted)
    x = ledger.internal_supply
    split = split_reverse(net_wanted, fees.buy)
    collateral = marginal_cost(params, x, split.gross)
    if collateral <= 0:
        raise InvalidAmountError(f"net_wanted too small to price: {net_wanted}")
    return Quote(
        side=Side.BUY,
        collateral=collateral,
        gross=split.gross,
        fee=split.fee,
        net=net_wanted,
        price_before=price_at_supply(params, x),
        price_after=price_at_supply(params, x + split.gross),
    )


def quote_sell(params: CurveParameters, ledger: Ledger, fees: FeeConfig, gross_in: int) -> Quote:
    _require_positive("gross_in", gross_in)
    x = ledger.internal_supply
    split = split_forward(gross_in, fees.sell)
    burn = split.net
    if burn > x:
        raise SupplyExceededError(f"burn {burn} exceeds internal supply {x}")
    collateral_out = marginal_refund(params, x, burn)
    if collateral_out > ledger.collateral_in - ledger.collateral_out:
        raise ReserveExceededError(
            f"collateral out {collateral_out} exceeds internal reserve {ledger.internal_reserve}"
        )
    return Quote(
        side=Side.SELL,
        collateral=collateral_out,
        gross=gross_in,
        fee=split.fee,
        net=burn,
        price_before=price_at_supply(params, x),
        price_after=price_at_supply(params, x - burn),
    )


def quote_sell_exact(params: CurveParameters, ledger: Ledger, fees: FeeConfig, collateral_out: int) -> Quote:
    _require_positive("collateral_out", collateral_out)
    x = ledger.internal_supply
    modeled = area_of(params, x)
    if collateral_out > modeled:
        raise ReserveExceededError(f"collateral out {collateral_out} exceeds modeled reserve {modeled}")
    if collateral_out > ledger.collateral_in - ledger.collateral_out:
        raise ReserveExceededError(
            f"collateral out {collateral_out} exceeds internal reserve {ledger.internal_reserve}"
        )
    x_new = supply_from_area(params, modeled - collateral_out)
    burn = x - x_new
    if burn <= 0:
        raise InvalidAmountError(f"collateral_out too small to burn supply: {collateral_out}")
    split = split_reverse(burn, fees.sell)
    return Quote(
        side=Side.SELL,
        collateral=collateral_out,
        gross=split.gross,
        fee=split.fee,
        net=burn,
        price_before=price_at_supply(params, x),
        price_after=price_at_supply(params, x_new),
    )


# ---------------------------------------------------------------------------
# Plans (quote + bound + post-trade ledger)
# ---------------------------------------------------------------------------

def plan_buy(
    params: CurveParameters, ledger: Ledger, fees: FeeConfig, collateral_in: int, min_net_out: int
) -> TradePlan:
    _require_bound("min_net_out", min_net_out)
    q = quote_buy(params, ledger, fees, collateral_in)
    if q.net < min_net_out:
        raise SlippageError(f"net out {q.net} below minimum {min_net_out}")
    return TradePlan(kind=TradeKind.BUY, quote=q, ledger=record_buy(ledger, q.collateral, q.gross))


def plan_buy_exact(
    params: CurveParameters, ledger: Ledger, fees: FeeConfig, net_wanted: int, max_collateral_in: int
) -> TradePlan:
    _require_bound("max_collateral_in", max_collateral_in)
    q = quote_buy_exact(params, ledger, fees, net_wanted)
    if q.collateral > max_collateral_in:
        raise SlippageError(f"collateral in {q.collateral} above maximum {max_collateral_in}")
    return TradePlan(kind=TradeKind.BUY_EXACT, quote=q, ledger=record_buy(ledger, q.collateral, q.gross))


def plan_sell(
    params: CurveParameters, ledger: Ledger, fees: FeeConfig, gross_in: int, min_collateral_out: int
) -> TradePlan:
    _require_bound("min_collateral_out", min_collateral_out)
    q = quote_sell(params, ledger, fees, gross_in)
    if q.collateral < min_collateral_out:
        raise SlippageError(f"collateral out {q.collateral} below minimum {min_collateral_out}")
    return TradePlan(kind=TradeKind.SELL, quote=q, ledger=record_sell(ledger, q.collateral, q.net))


def plan_sell_exact(
    params: CurveParameters, ledger: Ledger, fees: FeeConfig, collateral_out: int, max_gross_in: int
) -> TradePlan:
    _require_bound("max_gross_in", max_gross_in)
    q = quote_sell_exact(params, ledger, fees, collateral_out)
    if q.gross > max_gross_in:
        raise SlippageError(f"gross in {q.gross} above maximum {max_gross_in}")
    return TradePlan(kind=TradeKind.SELL_EXACT, quote=q, ledger=record_sell(ledger, q.collateral, q.net))


QuoteFn = Callable[[CurveParameters, Ledger, FeeConfig, int], Quote]
PlanFn = Callable[[CurveParameters, Ledger, FeeConfig, int, int], TradePlan]

_DISPATCH: dict[TradeKind, tuple[QuoteFn, PlanFn]] = {
    TradeKind.BUY: (quote_buy, plan_buy),
    TradeKind.BUY_EXACT: (quote_buy_exact, plan_buy_exact),
    TradeKind.SELL: (quote_sell, plan_sell),
    TradeKind.SELL_EXACT: (quote_sell_exact, plan_sell_exact),
}


def quote(kind: TradeKind, params: CurveParameters, ledger: Ledger, fees: FeeConfig, amount: int) -> Quote:
    return _DISPATCH[kind][0](params, ledger, fees, amount)


def plan(
    kind: TradeKind, params: CurveParameters, ledger: Ledger, fees: FeeConfig, amount: int, bound: int
) -> TradePlan:
    """Quote, bound-check and book a trade of the given kind."""
    return _DISPATCH[kind][1](params, ledger, fees, amount, bound)
