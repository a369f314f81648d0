from __future__ import annotations

from pathlib import Path

import pytest

from bondex.core.errors import ConfigError
from bondex.core.fixed_point import UNIT
from bondex.integration.config import (
    CONFIG_ENV,
    DEFAULT_ENGINE_ADDRESS,
    FEE_RECIPIENT_ENV,
    EngineConfig,
    apply_env_overrides,
    config_from_mapping,
    load_config,
)

RECIPIENT = "0x" + "fe" * 20
OTHER = "0x" + "0f" * 20

CONFIG_YAML = f"""
curve:
  a: "2.5"
fees:
  buy:  {{rate: 3, base: 100}}
  sell: {{rate: 1, base: 1000}}
  recipient: "{RECIPIENT}"
engine:
  address: "0x{'e1' * 20}"
"""


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "market.yaml"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_config(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, CONFIG_YAML), environ={})
    assert config.curve_scale == 5 * UNIT // 2
    assert config.engine_address == "0x" + "e1" * 20
    fees = config.fees()
    assert (fees.buy.rate, fees.buy.base) == (3, 100)
    assert (fees.sell.rate, fees.sell.base) == (1, 1000)
    assert fees.recipient == RECIPIENT
    assert config.curve().a == 5 * UNIT // 2


def test_path_from_environment(tmp_path: Path) -> None:
    p = _write(tmp_path, CONFIG_YAML)
    config = load_config(environ={CONFIG_ENV: str(p), FEE_RECIPIENT_ENV: OTHER})
    assert config.fee_recipient == OTHER


def test_missing_path() -> None:
    with pytest.raises(ConfigError):
        load_config(environ={})


def test_unreadable_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml", environ={})


def test_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, "curve: [unclosed\n"), environ={})


def test_defaults() -> None:
    config = config_from_mapping({"curve": {"a_raw": UNIT}, "fees": {"recipient": RECIPIENT}})
    assert config.curve_scale == UNIT
    assert (config.buy_fee_rate, config.buy_fee_base) == (0, 10_000)
    assert config.engine_address == DEFAULT_ENGINE_ADDRESS


def test_float_scale_goes_through_repr() -> None:
    config = config_from_mapping({"curve": {"a": 0.1}, "fees": {"recipient": RECIPIENT}})
    assert config.curve_scale == UNIT // 10


@pytest.mark.parametrize(
    "doc",
    [
        None,
        [],
        {"fees": {"recipient": RECIPIENT}},
        {"curve": {"a": "1"}},
        {"curve": "flat", "fees": {"recipient": RECIPIENT}},
        {"curve": {}, "fees": {"recipient": RECIPIENT}},
        {"curve": {"a": "zero"}, "fees": {"recipient": RECIPIENT}},
        {"curve": {"a": True}, "fees": {"recipient": RECIPIENT}},
        {"curve": {"a": "-1"}, "fees": {"recipient": RECIPIENT}},
        {"curve": {"a_raw": "1"}, "fees": {"recipient": RECIPIENT}},
        {"curve": {"a": "1"}, "fees": {}},
        {"curve": {"a": "1"}, "fees": {"recipient": "0x" + "00" * 20}},
        {"curve": {"a": "1"}, "fees": {"recipient": RECIPIENT, "buy": {"rate": 100, "base": 100}}},
        {"curve": {"a": "1"}, "fees": {"recipient": RECIPIENT, "sell": {"rate": 1, "base": 0}}},
        {"curve": {"a": "1"}, "fees": {"recipient": RECIPIENT, "sell": {"rate": 1.5}}},
        {"curve": {"a": "1"}, "fees": {"recipient": RECIPIENT}, "engine": {"address": " "}},
    ],
)
def test_invalid_documents(doc) -> None:
    with pytest.raises(ConfigError):
        config_from_mapping(doc)


def test_env_override_is_validated() -> None:
    config = EngineConfig(curve_scale=UNIT, fee_recipient=RECIPIENT)
    assert apply_env_overrides(config, {FEE_RECIPIENT_ENV: "  "}) == config
    with pytest.raises(ConfigError):
        apply_env_overrides(config, {FEE_RECIPIENT_ENV: "0x" + "00" * 20})
