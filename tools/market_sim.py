#!/usr/bin/env python3
"""
Offline primary-market simulation.

Builds an engine over in-memory tokens, replays a list of steps and prints a
JSON report. Amounts are decimal units (converted to 60.18).

    python tools/market_sim.py buy:100 sell:5 donate:1 skim
    python tools/market_sim.py --config market.yaml buy-exact:10 sell-exact:20
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bondex.core.errors import ExchangeError
from bondex.core.exchange import TradeKind
from bondex.core.fixed_point import format_fixed, to_fixed
from bondex.integration.config import EngineConfig, load_config
from bondex.integration.engine import PrimaryMarket
from bondex.integration.events import event_to_dict
from bondex.state.tokens import InMemoryToken

TRADER = "0x" + "aa" * 20
DONOR = "0x" + "dd" * 20
ADMIN = "0x" + "ad" * 20
FEE_RECIPIENT = "0x" + "fe" * 20

_TRADE_STEPS = {
    "buy": TradeKind.BUY,
    "buy-exact": TradeKind.BUY_EXACT,
    "sell": TradeKind.SELL,
    "sell-exact": TradeKind.SELL_EXACT,
}


def _default_config(a: str) -> EngineConfig:
    return EngineConfig(curve_scale=to_fixed(a), fee_recipient=FEE_RECIPIENT)


def _build_market(config: EngineConfig, fund: int) -> tuple[PrimaryMarket, InMemoryToken]:
    collateral = InMemoryToken("COLL", minters=[ADMIN])
    issued = InMemoryToken("BOND", minters=[config.engine_address])
    market = PrimaryMarket.from_config(
        config,
        collateral=collateral,
        issued=issued,
        is_admin=lambda who: who == ADMIN,
    )
    for holder in (TRADER, DONOR):
        collateral.mint(ADMIN, holder, fund)
    collateral.approve(TRADER, market.address, fund)
    issued.approve(TRADER, market.address, 2**255 - 1)
    return market, collateral


def _run_step(market: PrimaryMarket, collateral: InMemoryToken, step: str) -> Dict[str, Any]:
    name, _, raw_amount = step.partition(":")
    record: Dict[str, Any] = {"step": step}

    if name == "skim":
        record["skimmed"] = format_fixed(market.skim_excess(ADMIN))
        return record

    amount = to_fixed(raw_amount)
    if name == "donate":
        if not collateral.transfer(DONOR, market.address, amount):
            raise ValueError(f"donation failed: {step}")
        record["donated"] = format_fixed(amount)
        return record

    kind = _TRADE_STEPS.get(name)
    if kind is None:
        raise ValueError(f"unknown step: {step!r}")
    if kind in (TradeKind.BUY, TradeKind.SELL):
        bound = 0
    else:
        bound = 2**255 - 1
    q = getattr(market, kind.value)(TRADER, amount, bound)
    record["quote"] = {
        k: (v.value if hasattr(v, "value") else format_fixed(v)) for k, v in asdict(q).items()
    }
    return record


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Replay trades against an in-memory primary market.")
    ap.add_argument("steps", nargs="*", help="buy:N | buy-exact:N | sell:N | sell-exact:N | donate:N | skim")
    ap.add_argument("--config", type=str, default="", help="YAML engine config (default: a=--a, zero fees)")
    ap.add_argument("--a", type=str, default="1.0", help="curve scale when no config is given")
    ap.add_argument("--fund", type=str, default="1000000", help="collateral minted to the trader")
    ap.add_argument("--keep-going", action="store_true", help="record failed steps and continue")
    ap.add_argument("--out", type=str, default="")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else _default_config(args.a)
    except ExchangeError as exc:
        print(f"[market-sim] config error: {exc}", file=sys.stderr)
        return 2

    market, collateral = _build_market(config, to_fixed(args.fund))

    results: List[Dict[str, Any]] = []
    for step in args.steps:
        try:
            results.append(_run_step(market, collateral, step))
        except (ExchangeError, ValueError) as exc:
            results.append({"step": step, "error": f"{type(exc).__name__}: {exc}"})
            if not args.keep_going:
                break

    snapshot = market.snapshot()
    report = {
        "steps": results,
        "events": [event_to_dict(e) for e in market.events],
        "snapshot": snapshot,
        "price": format_fixed(snapshot["price"]),
        "reserve_gap": market.reserve_gap(),
    }
    payload = json.dumps(report, indent=2, sort_keys=True)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote {out_path}")
    else:
        print(payload)
    return 0 if all("error" not in r for r in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
