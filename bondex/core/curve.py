"""
Square-root bonding curve (pure, integer-only).

Supply `x` and collateral are 60.18 fixed-point ints. For a scale constant `a`:

    price(x) = sqrt(x / a)
    area(x)  = integral_0^x price = K * x * sqrt(x),     K = 2 / (3 * sqrt(a))
    area^-1(s) = (C * s) ** (2/3),                       C = 3 * sqrt(a) / 2

`area(x)` is the collateral a frictionless, zero-fee curve holds at supply `x`.
The inverse is evaluated as `exp(2/3 * ln(C * s))`, so it is only exact up to
the log/exp truncation; `round_trip_tolerance()` is the documented bound.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from . import fixed_point as fp
from .errors import ArithmeticOverflowError, ConfigError, NegativeResultError


# supply_from_area(area_of(x)) is within this many raw units of x:
# one part per billion, plus an absolute floor for supplies whose area
# quantises to a handful of raw units (worst case is around 1.6e6 raw).
ROUND_TRIP_PPB = 10**9
ROUND_TRIP_ABS = 10**7


@dataclass(frozen=True)
class CurveParameters:
    """Immutable curve constants; everything but `a` is derived once."""

    a: int
    sqrt_a: int = field(init=False)
    k: int = field(init=False)
    c: int = field(init=False)
    two_thirds: int = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.a, int) or isinstance(self.a, bool):
            raise ConfigError("curve scale a must be an int (60.18)")
        if self.a <= 0:
            raise ConfigError(f"curve scale a must be positive: {self.a}")
        sqrt_a = fp.sqrt(self.a)
        if sqrt_a == 0:
            raise ConfigError(f"curve scale a too small: {self.a}")
        three_sqrt_a = fp.mul(3 * fp.UNIT, sqrt_a)
        object.__setattr__(self, "sqrt_a", sqrt_a)
        object.__setattr__(self, "k", fp.div(2 * fp.UNIT, three_sqrt_a))
        object.__setattr__(self, "c", fp.div(three_sqrt_a, 2 * fp.UNIT))
        object.__setattr__(self, "two_thirds", fp.div(2 * fp.UNIT, 3 * fp.UNIT))


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def price_at_supply(params: CurveParameters, x: int) -> int:
    """Spot price (collateral per issued unit) at supply `x`."""
    _require_amount("x", x)
    if x == 0:
        return 0
    return fp.sqrt(fp.div(x, params.a))


def area_of(params: CurveParameters, x: int) -> int:
    """Cumulative collateral backing supply `x`: `K * x * sqrt(x)`."""
    _require_amount("x", x)
    if x == 0:
        return 0
    return fp.mul(params.k, fp.mul(x, fp.sqrt(x)))


def supply_from_area(params: CurveParameters, s: int) -> int:
    """
    Invert `area_of`: the supply whose area is `s`.

    Raises:
        ArithmeticOverflowError: `C * s` exceeds the signed 60.18 range.
        NegativeResultError: the exponentiated result is negative.
    """
    _require_amount("s", s)
    if s == 0:
        return 0
    v = params.c * s // fp.SCALE
    if v > fp.MAX_SD59x18:
        raise ArithmeticOverflowError(f"curve inversion input out of range: C * {s}")
    if v == 0:
        # ln(0) is undefined; the supply here is below one raw unit.
        return 0
    x = fp.exp(fp.mul(params.two_thirds, fp.ln(v)))
    if x < 0:
        raise NegativeResultError(f"curve inversion produced {x}")
    return x


def round_trip_tolerance(x: int) -> int:
    """Maximum `|supply_from_area(area_of(x)) - x|` in raw units."""
    _require_amount("x", x)
    return x // ROUND_TRIP_PPB + ROUND_TRIP_ABS


def marginal_cost(params: CurveParameters, x: int, dx: int) -> int:
    """Collateral needed to move supply from `x` to `x + dx`."""
    _require_amount("dx", dx)
    return area_of(params, x + dx) - area_of(params, x)


def marginal_refund(params: CurveParameters, x: int, dx: int) -> int:
    """Collateral released by moving supply from `x` down to `x - dx`."""
    _require_amount("dx", dx)
    if dx > x:
        raise ValueError(f"dx exceeds supply: {dx} > {x}")
    return area_of(params, x) - area_of(params, x - dx)
