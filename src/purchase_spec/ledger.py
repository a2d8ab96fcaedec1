"""Ledger model: native balances and per-purchase escrow movements.

Every unit attached to a call ends up either in a purchase's ``held_amount``
or, at settlement, back in exactly one party's account.
"""

from __future__ import annotations

from .config import MAX_AMOUNT
from .errors import ErrorCode, SpecError
from .types import AccountState, Purchase, StoreState


def apply_balance_change(balance: int, delta: int) -> int:
    """Apply +/- balance with u128 bounds."""
    new_balance = balance + delta
    if new_balance < 0:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "negative balance")
    if new_balance > MAX_AMOUNT:
        raise SpecError(ErrorCode.OVERFLOW, "balance overflow")
    return new_balance


def account(state: StoreState, address: bytes) -> AccountState:
    """Return the account for ``address``, creating it on first use."""
    acct = state.accounts.get(address)
    if acct is None:
        acct = AccountState(address=address)
        state.accounts[address] = acct
    return acct


def require_funds(state: StoreState, address: bytes, amount: int) -> None:
    acct = state.accounts.get(address)
    balance = acct.balance if acct is not None else 0
    if balance < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance for attached value")


def deposit(state: StoreState, purchase: Purchase, source: bytes, amount: int) -> None:
    """Move ``amount`` from ``source`` into the purchase escrow."""
    if amount == 0:
        return
    acct = account(state, source)
    acct.balance = apply_balance_change(acct.balance, -amount)
    purchase.held_amount = apply_balance_change(purchase.held_amount, amount)


def disburse(state: StoreState, purchase: Purchase, recipient: bytes) -> int:
    """Pay the whole purchase escrow to ``recipient`` and return the amount."""
    amount = purchase.held_amount
    acct = account(state, recipient)
    acct.balance = apply_balance_change(acct.balance, amount)
    purchase.held_amount = 0
    return amount


def escrow_balance(state: StoreState) -> int:
    """Total value currently held across every purchase of the store."""
    return sum(p.held_amount for p in state.contracts.values())


def total_supply(state: StoreState) -> int:
    return sum(a.balance for a in state.accounts.values()) + escrow_balance(state)
