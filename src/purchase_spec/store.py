"""Store construction and the public read surface."""

from __future__ import annotations

from typing import Optional

from .config import DEFAULT_TIMEOUT, ID_SIZE, MAX_PUBLIC_KEY_LEN, MAX_TIMEOUT, MIN_TIMEOUT
from .crypto.hash_algorithms import purchase_id
from .errors import ErrorCode, SpecError
from .types import AccountState, GlobalState, Item, Purchase, StoreState


def create_store(
    seller: bytes,
    public_key: str = "",
    timeout: int = DEFAULT_TIMEOUT,
    balances: Optional[dict[bytes, int]] = None,
    timestamp: int = 0,
) -> StoreState:
    """Deploy a store owned by ``seller``."""
    if not isinstance(seller, bytes) or len(seller) != ID_SIZE:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "seller must be a 32-byte address")
    if timeout < MIN_TIMEOUT or timeout > MAX_TIMEOUT:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "timeout out of range")
    if len(public_key) > MAX_PUBLIC_KEY_LEN:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "public key too long")

    state = StoreState(
        seller=seller,
        timeout=timeout,
        public_key=public_key,
        global_state=GlobalState(timestamp=timestamp),
    )
    for address, balance in (balances or {}).items():
        if len(address) != ID_SIZE:
            raise SpecError(ErrorCode.INVALID_PAYLOAD, "account address must be 32 bytes")
        if balance < 0:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "balance must be >= 0")
        state.accounts[address] = AccountState(address=address, balance=balance)
    return state


def get_purchase(state: StoreState, pid: bytes) -> Purchase:
    """Look up a purchase; unknown ids read as a record in the null state."""
    purchase = state.contracts.get(pid)
    if purchase is None:
        return Purchase()
    return purchase


def get_item(state: StoreState, item_id: int) -> Item:
    item = state.listings.get(item_id)
    if item is None:
        return Item()
    return item


def get_public_key(state: StoreState) -> str:
    return state.public_key


def get_timeout(state: StoreState) -> int:
    return state.timeout


def get_balance(state: StoreState, address: bytes) -> int:
    acct = state.accounts.get(address)
    return acct.balance if acct is not None else 0


def purchase_id_for(buyer: bytes, timestamp: int) -> bytes:
    return purchase_id(buyer, timestamp)
