"""Exception types for the primary-market engine.

Every failure aborts the whole operation; nothing is retried internally.
Pure-core functions raise these directly and the engine re-raises them after
rolling back.
"""

from __future__ import annotations


class ExchangeError(Exception):
    """Base class for all engine rejections."""


class ConfigError(ExchangeError):
    """Invalid construction or admin parameters (zero address, zero base, rate >= base, decimals)."""


class SlippageError(ExchangeError):
    """A caller-specified minimum/maximum bound was violated by the quote."""


class SupplyExceededError(ExchangeError):
    """Requested burn exceeds the internal supply."""


class ReserveExceededError(ExchangeError):
    """Requested collateral-out exceeds the modeled (or internal) reserve."""


class ArithmeticOverflowError(ExchangeError):
    """A fixed-point value left the representable signed 60.18 range."""


class NegativeResultError(ExchangeError):
    """Curve inversion produced a negative supply."""


class TransferFailureError(ExchangeError):
    """An external token call did not report success."""


class NoExcessError(ExchangeError):
    """Dust reconciliation found no positive surplus.

    ``gap`` is the signed ``real - modeled`` reserve difference that was seen.
    """

    def __init__(self, gap: int) -> None:
        self.gap = gap
        super().__init__(f"no excess to skim (real - modeled = {gap})")


class UnauthorizedError(ExchangeError):
    """Caller lacks administrative rights."""


class ReentrancyError(ExchangeError):
    """An operation was entered while another one was still in progress."""


class InvalidAmountError(ExchangeError, ValueError):
    """Zero, negative or non-integer amount, or a trade too small to move value."""


class LedgerInvariantError(ExchangeError):
    """A ledger post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"ledger invariant violations: {', '.join(violations)}")
