"""
Fee kernels (deterministic, integer-only).

Two independent rate/base pairs (buy side, sell side). Rounding direction is a
protocol rule, not an implementation detail:

- forward quotes (caller fixes what they give):  fee = floor(amount * rate / base)
- reverse quotes (caller fixes the net they want): gross = ceil(net * base / (base - rate))

Under-solving the gross in the reverse direction would let the realised fee come
out smaller than the rate implies, so the reverse solve always rounds up.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..state.balances import ZERO_ADDRESS, Address, Amount
from .errors import ConfigError


@unique
class Rounding(Enum):
    FLOOR = "floor"
    CEIL = "ceil"


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def mul_div(value: int, numerator: int, denominator: int, rounding: Rounding) -> int:
    """`value * numerator / denominator` for non-negative operands, rounded as asked."""
    _require_int("value", value)
    _require_int("numerator", numerator)
    _require_int("denominator", denominator)
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if value < 0 or numerator < 0:
        raise ValueError("operands must be non-negative")
    product = value * numerator
    if rounding is Rounding.CEIL:
        return (product + denominator - 1) // denominator
    return product // denominator


@dataclass(frozen=True)
class FeeRate:
    rate: int
    base: int

    def __post_init__(self) -> None:
        for name, v in (("rate", self.rate), ("base", self.base)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise ConfigError(f"fee {name} must be an int")
        if self.base <= 0:
            raise ConfigError(f"fee base must be positive: {self.base}")
        if not (0 <= self.rate < self.base):
            raise ConfigError(f"fee rate must be in [0, base): rate={self.rate} base={self.base}")


ZERO_FEE = FeeRate(rate=0, base=1)


@dataclass(frozen=True)
class FeeConfig:
    """Admin-controlled fee schedule; replaced wholesale, never mutated."""

    buy: FeeRate
    sell: FeeRate
    recipient: Address

    def __post_init__(self) -> None:
        if not isinstance(self.recipient, str) or not self.recipient.strip():
            raise ConfigError("fee recipient must be a non-empty address")
        if self.recipient == ZERO_ADDRESS:
            raise ConfigError("fee recipient must not be the zero address")


@dataclass(frozen=True)
class FeeSplit:
    gross: Amount
    fee: Amount
    net: Amount

    def __post_init__(self) -> None:
        if self.fee < 0 or self.net < 0:
            raise ValueError(f"fee split must be non-negative: fee={self.fee} net={self.net}")
        if self.fee + self.net != self.gross:
            raise ValueError("fee split must sum to gross")


def floor_fee(amount: Amount, fee: FeeRate) -> Amount:
    """Forward fee: `floor(amount * rate / base)`."""
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
    return mul_div(amount, fee.rate, fee.base, Rounding.FLOOR)


def gross_for_net(net: Amount, fee: FeeRate) -> Amount:
    """Reverse solve: smallest gross with `gross * (base - rate) / base >= net`."""
    if net < 0:
        raise ValueError(f"net must be non-negative: {net}")
    return mul_div(net, fee.base, fee.base - fee.rate, Rounding.CEIL)


def split_forward(gross: Amount, fee: FeeRate) -> FeeSplit:
    """Caller gives `gross`; the fee is floored and the rest is net."""
    f = floor_fee(gross, fee)
    return FeeSplit(gross=gross, fee=f, net=gross - f)


def split_reverse(net: Amount, fee: FeeRate) -> FeeSplit:
    """Caller wants exactly `net`; gross is ceiled and the fee is the difference."""
    gross = gross_for_net(net, fee)
    return FeeSplit(gross=gross, fee=gross - net, net=net)
