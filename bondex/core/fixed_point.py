"""
Signed 60.18 fixed-point arithmetic on plain Python ints.

A value `x` represents the real number `x / 10**18`. The representable range is
the signed 256-bit range, so results are checked against it even though Python
ints never wrap.

Rounding is part of the contract and is consensus-critical:
- `mul` / `div` truncate toward zero,
- `sqrt` is the truncating integer square root,
- `ln` / `exp` are evaluated with `decimal` at `_PRECISION` significant digits
  and truncated toward zero to 18 fractional digits.
"""

from __future__ import annotations

import math
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from .errors import ArithmeticOverflowError


SCALE = 10**18
UNIT = SCALE
MAX_SD59x18 = 2**255 - 1
MIN_SD59x18 = -(2**255)

# Largest exp() input accepted (e**x stays below 2**192 whole units).
EXP_MAX_INPUT = 133_084258667509499440
# Below this, exp() truncates to zero.
EXP_MIN_THRESHOLD = -41_446531673892822322

_PRECISION = 96


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _check_range(name: str, value: int) -> int:
    if value > MAX_SD59x18 or value < MIN_SD59x18:
        raise ArithmeticOverflowError(f"{name} out of 60.18 range: {value}")
    return value


def _truncate(value: Decimal) -> int:
    """Scale a real-valued Decimal to 60.18, truncating toward zero."""
    return int(value.scaleb(18).to_integral_value(rounding=ROUND_DOWN))


def to_fixed(value: int | str | Decimal) -> int:
    """
    Convert a human value to 60.18.

    Ints are whole units (`to_fixed(3) == 3 * 10**18`). Strings and Decimals may
    carry a fractional part; digits past the 18th are truncated. Floats are
    rejected to keep conversions deterministic.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"cannot convert {type(value).__name__} to 60.18")
    if isinstance(value, int):
        return _check_range("value", value * SCALE)
    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"not a decimal number: {value!r}") from exc
    if not isinstance(value, Decimal):
        raise TypeError(f"cannot convert {type(value).__name__} to 60.18")
    if not value.is_finite():
        raise ValueError(f"not a finite number: {value}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return _check_range("value", _truncate(value))


def to_decimal(x: int) -> Decimal:
    """Exact Decimal view of a 60.18 value."""
    _require_int("x", x)
    return Decimal(f"{x}e-18")


def format_fixed(x: int) -> str:
    """Render a 60.18 value as a plain decimal string (no exponent, no trailing zeros)."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        text = f"{to_decimal(x).normalize():f}"
    return "0" if text in ("-0", "0") else text


def mul(x: int, y: int) -> int:
    """`x * y` in 60.18, truncated toward zero."""
    _require_int("x", x)
    _require_int("y", y)
    product = x * y
    q = abs(product) // SCALE
    return _check_range("mul", -q if product < 0 else q)


def div(x: int, y: int) -> int:
    """`x / y` in 60.18, truncated toward zero."""
    _require_int("x", x)
    _require_int("y", y)
    if y == 0:
        raise ValueError("division by zero")
    numerator = x * SCALE
    q = abs(numerator) // abs(y)
    negative = (numerator < 0) != (y < 0)
    return _check_range("div", -q if negative else q)


def sqrt(x: int) -> int:
    """Truncating square root in 60.18: `floor(sqrt(x * 10**18))`."""
    _require_int("x", x)
    if x < 0:
        raise ValueError(f"sqrt of negative value: {x}")
    if x > MAX_SD59x18 // SCALE:
        raise ArithmeticOverflowError(f"sqrt input too large: {x}")
    return math.isqrt(x * SCALE)


def ln(x: int) -> int:
    """Natural logarithm of a strictly positive 60.18 value."""
    _require_int("x", x)
    if x <= 0:
        raise ValueError(f"ln of non-positive value: {x}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return _truncate(Decimal(x).scaleb(-18).ln())


def exp(x: int) -> int:
    """Natural exponent of a 60.18 value."""
    _require_int("x", x)
    if x < EXP_MIN_THRESHOLD:
        return 0
    if x > EXP_MAX_INPUT:
        raise ArithmeticOverflowError(f"exp input too large: {x}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return _check_range("exp", _truncate(Decimal(x).scaleb(-18).exp()))
