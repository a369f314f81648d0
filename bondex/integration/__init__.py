"""
Primary-market engine shell: configuration, records and the engine itself
"""

from .config import EngineConfig, config_from_mapping, load_config
from .engine import PrimaryMarket
from .events import Bought, FeesUpdated, Skimmed, Sold, event_to_dict

__all__ = [
    "EngineConfig",
    "config_from_mapping",
    "load_config",
    "PrimaryMarket",
    "Bought",
    "FeesUpdated",
    "Skimmed",
    "Sold",
    "event_to_dict",
]
