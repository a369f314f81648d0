"""
Core primary-market algorithms (pure, integer-only).
"""

from .curve import (
    CurveParameters,
    area_of,
    price_at_supply,
    round_trip_tolerance,
    supply_from_area,
)
from .errors import (
    ArithmeticOverflowError,
    ConfigError,
    ExchangeError,
    InvalidAmountError,
    LedgerInvariantError,
    NegativeResultError,
    NoExcessError,
    ReentrancyError,
    ReserveExceededError,
    SlippageError,
    SupplyExceededError,
    TransferFailureError,
    UnauthorizedError,
)
from .exchange import Quote, Side, TradeKind, TradePlan
from .exchange import plan as plan_trade
from .exchange import quote as quote_trade
from .fees import FeeConfig, FeeRate, FeeSplit, Rounding, floor_fee, gross_for_net, split_forward, split_reverse
from .ledger import Ledger, initial_ledger, ledger_from_dict, ledger_to_dict
from .reconcile import SkimPlan, plan_skim, reserve_gap

__all__ = [
    "CurveParameters",
    "area_of",
    "price_at_supply",
    "round_trip_tolerance",
    "supply_from_area",
    "ArithmeticOverflowError",
    "ConfigError",
    "ExchangeError",
    "InvalidAmountError",
    "LedgerInvariantError",
    "NegativeResultError",
    "NoExcessError",
    "ReentrancyError",
    "ReserveExceededError",
    "SlippageError",
    "SupplyExceededError",
    "TransferFailureError",
    "UnauthorizedError",
    "Quote",
    "Side",
    "TradeKind",
    "TradePlan",
    "plan_trade",
    "quote_trade",
    "FeeConfig",
    "FeeRate",
    "FeeSplit",
    "Rounding",
    "floor_fee",
    "gross_for_net",
    "split_forward",
    "split_reverse",
    "Ledger",
    "initial_ledger",
    "ledger_from_dict",
    "ledger_to_dict",
    "SkimPlan",
    "plan_skim",
    "reserve_gap",
]
