"""
Token collaborator capabilities and an in-memory ERC20-style reference token.

The engine only depends on the protocols below. Every call carries the acting
address explicitly (`caller`), which plays the role of the message sender.

`InMemoryToken` is a deterministic stand-in used by tests, the simulation tool
and off-chain modelling. Like a non-reverting ERC20 it reports failed
transfers through its boolean return value; `mint` / `burn_from` raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Protocol, Tuple, runtime_checkable

from .balances import ZERO_ADDRESS, Address, Amount, AssetId, BalanceTable


class CollateralToken(Protocol):
    def transfer(self, caller: Address, to: Address, amount: Amount) -> bool: ...

    def transfer_from(self, caller: Address, owner: Address, to: Address, amount: Amount) -> bool: ...

    def balance_of(self, holder: Address) -> Amount: ...

    def decimals(self) -> int: ...


class IssuedToken(CollateralToken, Protocol):
    def mint(self, caller: Address, to: Address, amount: Amount) -> None: ...

    def burn_from(self, caller: Address, owner: Address, amount: Amount) -> None: ...


@runtime_checkable
class SupportsSnapshot(Protocol):
    """Collaborators that can take part in the engine's rollback boundary."""

    def snapshot(self) -> object: ...

    def restore(self, snapshot: object) -> None: ...


@dataclass(frozen=True)
class TokenSnapshot:
    balances: BalanceTable
    allowances: Dict[Tuple[Address, Address], Amount]
    total_supply: Amount


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")


class InMemoryToken:
    """ERC20-style token over a `BalanceTable`, with minter-gated mint."""

    def __init__(self, symbol: AssetId, *, decimals: int = 18, minters: Iterable[Address] = ()):
        self.symbol = symbol
        self._decimals = decimals
        self._balances = BalanceTable()
        self._allowances: Dict[Tuple[Address, Address], Amount] = {}
        self._total_supply: Amount = 0
        self._minters = set(minters)

    def __repr__(self) -> str:
        return f"InMemoryToken({self.symbol!r}, supply={self._total_supply})"

    # -- views --------------------------------------------------------------

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, holder: Address) -> Amount:
        return self._balances.get(holder, self.symbol)

    def total_supply(self) -> Amount:
        return self._total_supply

    def allowance(self, owner: Address, spender: Address) -> Amount:
        return self._allowances.get((owner, spender), 0)

    # -- ERC20 surface ------------------------------------------------------

    def approve(self, caller: Address, spender: Address, amount: Amount) -> bool:
        _require_amount(amount)
        self._allowances[(caller, spender)] = amount
        return True

    def transfer(self, caller: Address, to: Address, amount: Amount) -> bool:
        _require_amount(amount)
        if to == ZERO_ADDRESS or self.balance_of(caller) < amount:
            return False
        self._balances.move(caller, to, self.symbol, amount)
        return True

    def transfer_from(self, caller: Address, owner: Address, to: Address, amount: Amount) -> bool:
        _require_amount(amount)
        allowed = self.allowance(owner, caller)
        if to == ZERO_ADDRESS or allowed < amount or self.balance_of(owner) < amount:
            return False
        self._allowances[(owner, caller)] = allowed - amount
        self._balances.move(owner, to, self.symbol, amount)
        return True

    # -- supply management --------------------------------------------------

    def add_minter(self, minter: Address) -> None:
        self._minters.add(minter)

    def mint(self, caller: Address, to: Address, amount: Amount) -> None:
        _require_amount(amount)
        if caller not in self._minters:
            raise PermissionError(f"{caller} may not mint {self.symbol}")
        if to == ZERO_ADDRESS:
            raise ValueError("cannot mint to the zero address")
        self._balances.add(to, self.symbol, amount)
        self._total_supply += amount

    def burn_from(self, caller: Address, owner: Address, amount: Amount) -> None:
        _require_amount(amount)
        allowed = self.allowance(owner, caller)
        if caller != owner and allowed < amount:
            raise PermissionError(f"burn exceeds allowance: {amount} > {allowed}")
        self._balances.subtract(owner, self.symbol, amount)
        if caller != owner:
            self._allowances[(owner, caller)] = allowed - amount
        self._total_supply -= amount

    # -- rollback support ---------------------------------------------------

    def snapshot(self) -> TokenSnapshot:
        return TokenSnapshot(
            balances=self._balances.copy(),
            allowances=dict(self._allowances),
            total_supply=self._total_supply,
        )

    def restore(self, snapshot: object) -> None:
        if not isinstance(snapshot, TokenSnapshot):
            raise TypeError("snapshot must be a TokenSnapshot")
        self._balances = snapshot.balances.copy()
        self._allowances = dict(snapshot.allowances)
        self._total_supply = snapshot.total_supply
