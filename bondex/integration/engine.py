"""
Primary-market engine (imperative shell around the functional core).

`PrimaryMarket` owns the ledger and the fee schedule, talks to the token
collaborators and emits records. Every public operation:

1. takes the engine lock and refuses reentrant calls,
2. plans the whole transition with `bondex.core` (all checks, all deltas),
3. commits the ledger and the record (effects),
4. only then calls out to the tokens (interactions).

Each operation runs inside a rollback boundary: on any exception the ledger,
the fee schedule, the event log and every collaborator that supports
`snapshot()/restore()` are put back exactly as they were.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..core import exchange
from ..core.curve import CurveParameters, price_at_supply
from ..core.errors import (
    ConfigError,
    ExchangeError,
    NoExcessError,
    ReentrancyError,
    TransferFailureError,
    UnauthorizedError,
)
from ..core.exchange import Quote, TradeKind, TradePlan
from ..core.fees import FeeConfig, FeeRate
from ..core.ledger import Ledger, initial_ledger, ledger_to_dict, require_invariants
from ..core.reconcile import plan_skim, reserve_gap
from ..state.balances import ZERO_ADDRESS, Address
from ..state.tokens import CollateralToken, IssuedToken, SupportsSnapshot
from .config import EngineConfig
from .events import Bought, Event, FeesUpdated, Skimmed, Sold

logger = logging.getLogger(__name__)

AdminPredicate = Callable[[Address], bool]

REQUIRED_DECIMALS = 18


class PrimaryMarket:
    """Bonding-curve exchange between a collateral token and an issued token."""

    def __init__(
        self,
        *,
        address: Address,
        collateral: CollateralToken,
        issued: IssuedToken,
        curve: CurveParameters,
        fees: FeeConfig,
        is_admin: AdminPredicate,
        ledger: Optional[Ledger] = None,
    ):
        if not isinstance(address, str) or not address.strip() or address == ZERO_ADDRESS:
            raise ConfigError("engine address must be a non-zero address")
        if not callable(is_admin):
            raise ConfigError("is_admin must be callable")
        for label, token in (("collateral", collateral), ("issued", issued)):
            try:
                decimals = token.decimals()
            except Exception as exc:
                raise ConfigError(f"{label} token decimals() failed: {exc}") from exc
            if decimals != REQUIRED_DECIMALS:
                raise ConfigError(f"{label} token must have {REQUIRED_DECIMALS} decimals, has {decimals}")

        self._address = address
        self._collateral = collateral
        self._issued = issued
        self._curve = curve
        self._fees = fees
        self._is_admin = is_admin
        self._ledger = require_invariants(ledger) if ledger is not None else initial_ledger()
        self._events: List[Event] = []
        self._lock = threading.RLock()
        self._busy = False

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        *,
        collateral: CollateralToken,
        issued: IssuedToken,
        is_admin: AdminPredicate,
    ) -> "PrimaryMarket":
        return cls(
            address=config.engine_address,
            collateral=collateral,
            issued=issued,
            curve=config.curve(),
            fees=config.fees(),
            is_admin=is_admin,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def address(self) -> Address:
        return self._address

    @property
    def curve(self) -> CurveParameters:
        return self._curve

    @property
    def fees(self) -> FeeConfig:
        return self._fees

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    @property
    def internal_supply(self) -> int:
        return self._ledger.internal_supply

    @property
    def internal_reserve(self) -> int:
        return self._ledger.internal_reserve

    @property
    def modeled_reserve(self) -> int:
        return self._ledger.modeled_reserve(self._curve)

    def real_reserve(self) -> int:
        """Collateral actually held by the engine's custody address."""
        return self._call_token("collateral.balance_of", self._collateral.balance_of, self._address)

    def price(self) -> int:
        return price_at_supply(self._curve, self._ledger.internal_supply)

    def reserve_gap(self) -> int:
        """Signed `real - modeled`; a negative gap is logged, never patched."""
        with self._lock:
            gap = reserve_gap(self._curve, self._ledger, self.real_reserve())
        if gap < 0:
            logger.warning("reserve deficit: real reserve is %d below modeled reserve", -gap)
        return gap

    def quote(self, kind: TradeKind, amount: int) -> Quote:
        with self._lock:
            return exchange.quote(kind, self._curve, self._ledger, self._fees, amount)

    def quote_buy(self, collateral_in: int) -> Quote:
        return self.quote(TradeKind.BUY, collateral_in)

    def quote_buy_exact(self, net_wanted: int) -> Quote:
        return self.quote(TradeKind.BUY_EXACT, net_wanted)

    def quote_sell(self, gross_in: int) -> Quote:
        return self.quote(TradeKind.SELL, gross_in)

    def quote_sell_exact(self, collateral_out: int) -> Quote:
        return self.quote(TradeKind.SELL_EXACT, collateral_out)

    def snapshot(self) -> Dict[str, Any]:
        """Point-in-time view of ledger, reserves and fees (JSON-friendly)."""
        with self._lock:
            fees = self._fees
            return {
                "address": self._address,
                "ledger": ledger_to_dict(self._ledger),
                "internal_supply": self.internal_supply,
                "internal_reserve": self.internal_reserve,
                "modeled_reserve": self.modeled_reserve,
                "real_reserve": self.real_reserve(),
                "price": self.price(),
                "fees": {
                    "buy_rate": fees.buy.rate,
                    "buy_base": fees.buy.base,
                    "sell_rate": fees.sell.rate,
                    "sell_base": fees.sell.base,
                    "recipient": fees.recipient,
                },
                "events": len(self._events),
            }

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def buy(self, caller: Address, collateral_in: int, min_net_out: int, recipient: Optional[Address] = None) -> Quote:
        """Pay exactly `collateral_in`; receive at least `min_net_out` issued units."""
        return self._trade(TradeKind.BUY, caller, collateral_in, min_net_out, recipient)

    def buy_exact(
        self, caller: Address, net_wanted: int, max_collateral_in: int, recipient: Optional[Address] = None
    ) -> Quote:
        """Receive exactly `net_wanted` issued units; pay at most `max_collateral_in`."""
        return self._trade(TradeKind.BUY_EXACT, caller, net_wanted, max_collateral_in, recipient)

    def sell(self, caller: Address, gross_in: int, min_collateral_out: int, recipient: Optional[Address] = None) -> Quote:
        """Hand over exactly `gross_in` issued units; receive at least `min_collateral_out`."""
        return self._trade(TradeKind.SELL, caller, gross_in, min_collateral_out, recipient)

    def sell_exact(
        self, caller: Address, collateral_out: int, max_gross_in: int, recipient: Optional[Address] = None
    ) -> Quote:
        """Receive exactly `collateral_out`; hand over at most `max_gross_in` issued units."""
        return self._trade(TradeKind.SELL_EXACT, caller, collateral_out, max_gross_in, recipient)

    def _trade(self, kind: TradeKind, caller: Address, amount: int, bound: int, recipient: Optional[Address]) -> Quote:
        to = caller if recipient is None else recipient
        with self._operation(kind.value):
            plan = exchange.plan(kind, self._curve, self._ledger, self._fees, amount, bound)
            if plan.quote.side is exchange.Side.BUY:
                self._settle_buy(caller, to, plan)
            else:
                self._settle_sell(caller, to, plan)
        q = plan.quote
        logger.info(
            "%s caller=%s to=%s collateral=%d gross=%d fee=%d net=%d price=%d->%d",
            kind.value, caller, to, q.collateral, q.gross, q.fee, q.net, q.price_before, q.price_after,
        )
        return q

    def _settle_buy(self, caller: Address, to: Address, plan: TradePlan) -> None:
        q = plan.quote
        fee_recipient = self._fees.recipient

        self._ledger = plan.ledger
        self._events.append(
            Bought(
                buyer=caller,
                to=to,
                collateral_used=q.collateral,
                gross_out=q.gross,
                fee=q.fee,
                net_out=q.net,
                price_before=q.price_before,
                price_after=q.price_after,
            )
        )

        self._require_success(
            "collateral.transfer_from",
            self._collateral.transfer_from, self._address, caller, self._address, q.collateral,
        )
        if q.fee:
            self._call_token("issued.mint", self._issued.mint, self._address, fee_recipient, q.fee)
        self._call_token("issued.mint", self._issued.mint, self._address, to, q.net)

    def _settle_sell(self, caller: Address, to: Address, plan: TradePlan) -> None:
        q = plan.quote
        fee_recipient = self._fees.recipient

        self._ledger = plan.ledger
        self._events.append(
            Sold(
                seller=caller,
                to=to,
                gross_in=q.gross,
                fee=q.fee,
                burned=q.net,
                collateral_out=q.collateral,
                price_before=q.price_before,
                price_after=q.price_after,
            )
        )

        if q.fee:
            # The fee portion changes hands; only the rest is destroyed.
            self._require_success(
                "issued.transfer_from",
                self._issued.transfer_from, self._address, caller, fee_recipient, q.fee,
            )
        self._call_token("issued.burn_from", self._issued.burn_from, self._address, caller, q.net)
        if q.collateral:
            self._require_success(
                "collateral.transfer", self._collateral.transfer, self._address, to, q.collateral,
            )

    # ------------------------------------------------------------------
    # Dust reconciliation
    # ------------------------------------------------------------------

    def skim_excess(self, caller: Address) -> int:
        """Send `real - modeled` reserve to an admin caller and book it as collateral out."""
        with self._operation("skim_excess"):
            self._require_admin(caller, "skim_excess")
            real = self.real_reserve()
            try:
                skim = plan_skim(self._curve, self._ledger, real)
            except NoExcessError as exc:
                if exc.gap < 0:
                    logger.warning("reserve deficit: real reserve is %d below modeled reserve", -exc.gap)
                raise

            self._ledger = skim.ledger
            self._events.append(Skimmed(to=caller, amount=skim.excess))
            self._require_success(
                "collateral.transfer", self._collateral.transfer, self._address, caller, skim.excess,
            )
        logger.info("skimmed %d collateral to %s", skim.excess, caller)
        return skim.excess

    # ------------------------------------------------------------------
    # Admin surface
    # ------------------------------------------------------------------

    def set_fees(
        self,
        caller: Address,
        buy_rate: int,
        buy_base: int,
        sell_rate: int,
        sell_base: int,
        fee_recipient: Address,
    ) -> FeeConfig:
        with self._operation("set_fees"):
            self._require_admin(caller, "set_fees")
            fees = FeeConfig(
                buy=FeeRate(rate=buy_rate, base=buy_base),
                sell=FeeRate(rate=sell_rate, base=sell_base),
                recipient=fee_recipient,
            )
            self._install_fees(fees)
        return fees

    def set_buy_fees(self, caller: Address, rate: int, base: int) -> FeeConfig:
        with self._operation("set_buy_fees"):
            self._require_admin(caller, "set_buy_fees")
            fees = replace(self._fees, buy=FeeRate(rate=rate, base=base))
            self._install_fees(fees)
        return fees

    def set_sell_fees(self, caller: Address, rate: int, base: int) -> FeeConfig:
        with self._operation("set_sell_fees"):
            self._require_admin(caller, "set_sell_fees")
            fees = replace(self._fees, sell=FeeRate(rate=rate, base=base))
            self._install_fees(fees)
        return fees

    def _install_fees(self, fees: FeeConfig) -> None:
        self._fees = fees
        self._events.append(
            FeesUpdated(
                buy_rate=fees.buy.rate,
                buy_base=fees.buy.base,
                sell_rate=fees.sell.rate,
                sell_base=fees.sell.base,
                fee_recipient=fees.recipient,
            )
        )
        logger.info(
            "fees updated buy=%d/%d sell=%d/%d recipient=%s",
            fees.buy.rate, fees.buy.base, fees.sell.rate, fees.sell.base, fees.recipient,
        )

    def _require_admin(self, caller: Address, action: str) -> None:
        if not self._is_admin(caller):
            raise UnauthorizedError(f"{caller} may not call {action}")

    # ------------------------------------------------------------------
    # Serialisation, rollback and collaborator calls
    # ------------------------------------------------------------------

    def _snapshot_targets(self) -> List[SupportsSnapshot]:
        targets: List[SupportsSnapshot] = []
        for token in (self._collateral, self._issued):
            if isinstance(token, SupportsSnapshot) and all(t is not token for t in targets):
                targets.append(token)
        return targets

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        with self._lock:
            if self._busy:
                raise ReentrancyError(f"{name}: another engine operation is in progress")
            self._busy = True
            ledger, fees, n_events = self._ledger, self._fees, len(self._events)
            snapshots = [(token, token.snapshot()) for token in self._snapshot_targets()]
            try:
                yield
            except Exception as exc:
                self._ledger = ledger
                self._fees = fees
                del self._events[n_events:]
                for token, snap in reversed(snapshots):
                    token.restore(snap)
                logger.debug("%s rolled back: %s", name, exc)
                raise
            finally:
                self._busy = False

    @staticmethod
    def _call_token(label: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except ExchangeError:
            raise
        except Exception as exc:
            raise TransferFailureError(f"{label} failed: {exc}") from exc

    def _require_success(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        if not self._call_token(label, fn, *args):
            raise TransferFailureError(f"{label} did not report success")
