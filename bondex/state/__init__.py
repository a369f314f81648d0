"""
Custody state: balances and token collaborators
"""

from .balances import ZERO_ADDRESS, Address, Amount, AssetId, BalanceTable
from .tokens import CollateralToken, InMemoryToken, IssuedToken, SupportsSnapshot

__all__ = [
    "ZERO_ADDRESS",
    "Address",
    "Amount",
    "AssetId",
    "BalanceTable",
    "CollateralToken",
    "InMemoryToken",
    "IssuedToken",
    "SupportsSnapshot",
]
