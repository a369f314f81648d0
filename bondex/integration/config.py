"""
Engine configuration: frozen dataclass + YAML loader.

Document layout:

    curve:
      a: "1.0"            # decimal units; or `a_raw: 1000000000000000000` (60.18)
    fees:
      buy:  {rate: 3, base: 100}
      sell: {rate: 3, base: 100}
      recipient: "0x..."
    engine:
      address: "0x..."    # optional custody address of the engine

Environment:
- `BONDEX_CONFIG` names the config path used when none is passed.
- `BONDEX_FEE_RECIPIENT` overrides `fees.recipient`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..core.curve import CurveParameters
from ..core.errors import ConfigError
from ..core.fees import FeeConfig, FeeRate
from ..core.fixed_point import to_fixed
from ..state.balances import Address

logger = logging.getLogger(__name__)

CONFIG_ENV = "BONDEX_CONFIG"
FEE_RECIPIENT_ENV = "BONDEX_FEE_RECIPIENT"
DEFAULT_ENGINE_ADDRESS: Address = "0x" + "e0" * 20
DEFAULT_FEE_BASE = 10_000


@dataclass(frozen=True)
class EngineConfig:
    curve_scale: int
    fee_recipient: Address
    buy_fee_rate: int = 0
    buy_fee_base: int = DEFAULT_FEE_BASE
    sell_fee_rate: int = 0
    sell_fee_base: int = DEFAULT_FEE_BASE
    engine_address: Address = DEFAULT_ENGINE_ADDRESS

    def __post_init__(self) -> None:
        # Fail at load time rather than at engine construction.
        self.curve()
        self.fees()
        if not isinstance(self.engine_address, str) or not self.engine_address.strip():
            raise ConfigError("engine address must be a non-empty string")

    def curve(self) -> CurveParameters:
        return CurveParameters(a=self.curve_scale)

    def fees(self) -> FeeConfig:
        return FeeConfig(
            buy=FeeRate(rate=self.buy_fee_rate, base=self.buy_fee_base),
            sell=FeeRate(rate=self.sell_fee_rate, base=self.sell_fee_base),
            recipient=self.fee_recipient,
        )


def _section(obj: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    value = obj.get(key)
    if value is None:
        if required:
            raise ConfigError(f"missing config section {key!r}")
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"config section {key!r} must be a mapping")
    return value


def _int_field(obj: Mapping[str, Any], key: str, *, where: str, default: Optional[int] = None) -> int:
    value = obj.get(key, default)
    if value is None:
        raise ConfigError(f"missing {where}.{key}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}.{key} must be an integer, got {value!r}")
    return value


def _curve_scale(curve: Mapping[str, Any]) -> int:
    if "a_raw" in curve:
        return _int_field(curve, "a_raw", where="curve")
    if "a" not in curve:
        raise ConfigError("curve needs either 'a' or 'a_raw'")
    raw = curve["a"]
    if isinstance(raw, bool):
        raise ConfigError(f"curve.a must be a number, got {raw!r}")
    if isinstance(raw, float):
        # YAML floats go through their shortest repr to stay deterministic.
        raw = Decimal(repr(raw))
    try:
        return to_fixed(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid curve.a: {raw!r}") from exc


def _fee_rate(fees: Mapping[str, Any], side: str) -> tuple[int, int]:
    entry = _section(fees, side, required=False)
    where = f"fees.{side}"
    rate = _int_field(entry, "rate", where=where, default=0)
    base = _int_field(entry, "base", where=where, default=DEFAULT_FEE_BASE)
    return rate, base


def config_from_mapping(obj: Any) -> EngineConfig:
    """Build an `EngineConfig` from a parsed document; raises ConfigError."""
    if not isinstance(obj, Mapping):
        raise ConfigError("config document must be a mapping")
    curve = _section(obj, "curve", required=True)
    fees = _section(obj, "fees", required=True)
    engine = _section(obj, "engine", required=False)

    recipient = fees.get("recipient")
    if not isinstance(recipient, str):
        raise ConfigError("fees.recipient must be an address string")

    buy_rate, buy_base = _fee_rate(fees, "buy")
    sell_rate, sell_base = _fee_rate(fees, "sell")

    return EngineConfig(
        curve_scale=_curve_scale(curve),
        fee_recipient=recipient,
        buy_fee_rate=buy_rate,
        buy_fee_base=buy_base,
        sell_fee_rate=sell_rate,
        sell_fee_base=sell_base,
        engine_address=str(engine.get("address", DEFAULT_ENGINE_ADDRESS)),
    )


def apply_env_overrides(config: EngineConfig, environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    env = os.environ if environ is None else environ
    recipient = (env.get(FEE_RECIPIENT_ENV) or "").strip()
    if recipient:
        logger.info("fee recipient overridden from %s", FEE_RECIPIENT_ENV)
        config = replace(config, fee_recipient=recipient)
    return config


def load_config(path: Optional[str | Path] = None, *, environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """Read a YAML config file (default: `$BONDEX_CONFIG`) and apply env overrides."""
    env = os.environ if environ is None else environ
    if path is None:
        path = (env.get(CONFIG_ENV) or "").strip()
        if not path:
            raise ConfigError(f"no config path given and {CONFIG_ENV} is not set")
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config {p}: {exc}") from exc
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {p}: {exc}") from exc

    config = apply_env_overrides(config_from_mapping(obj), env)
    logger.debug("loaded engine config from %s", p)
    return config
