"""
Multi-asset custody balances with deterministic ordering.

Implements BalanceTable[Address, AssetId] -> Amount
"""

from typing import Dict, Tuple


# Type aliases
Address = str  # 20-byte hex string (0x...)
AssetId = str  # token symbol or contract address
Amount = int  # Non-negative integer, 60.18 fixed point for 18-decimal tokens

ZERO_ADDRESS = "0x" + "00" * 20


class BalanceTable:
    """
    Balance table mapping (holder, asset) -> amount.

    Zero balances are dropped to keep the table sparse. Do not rely on dict
    iteration order; `snapshot_items()` returns a sorted view.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    def get(self, holder: Address, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def set(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (holder, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def add(self, holder: Address, asset: AssetId, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(holder, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(holder, asset, new_balance)

    def subtract(self, holder: Address, asset: AssetId, delta: Amount) -> None:
        """
        Subtract a non-negative delta from balance.

        Raises:
            ValueError: If delta is negative or insufficient balance
        """
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(holder, asset, -delta)

    def move(self, src: Address, dst: Address, asset: AssetId, amount: Amount) -> None:
        """Move `amount` of `asset` from `src` to `dst`; all-or-nothing."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        self.subtract(src, asset, amount)
        self.add(dst, asset, amount)

    def total(self, asset: AssetId) -> Amount:
        """Sum of all balances of `asset`."""
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def copy(self) -> "BalanceTable":
        copied = BalanceTable()
        copied._balances = dict(self._balances)
        return copied

    def snapshot_items(self) -> list[Tuple[Address, AssetId, Amount]]:
        """Balances as a list sorted by (holder, asset)."""
        return sorted((h, a, amount) for (h, a), amount in self._balances.items())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
