"""Core types for the purchase escrow model.

A store is scoped to exactly one seller. It holds the seller's catalog
(``listings``), the purchase records (``contracts``) and the ledger view the
protocol settles against (``accounts`` and ``global_state``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import DEFAULT_TIMEOUT


class PurchaseState(Enum):
    NULL = "null"
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    DISPUTE = "dispute"
    COUNTER = "counter"
    FAILED = "failed"


TERMINAL_STATES = frozenset({
    PurchaseState.COMPLETED,
    PurchaseState.REJECTED,
    PurchaseState.FAILED,
})


class Role(Enum):
    SELLER = "seller"
    BUYER = "buyer"


class CallType(Enum):
    # Buyer
    REQUEST_PURCHASE = "request_purchase"
    ABORT = "abort"
    CONFIRM_DELIVERY = "confirm_delivery"
    DISPUTE_DELIVERY = "dispute_delivery"
    OPEN_COMMITMENT = "open_commitment"
    # Seller
    ACCEPT_CONTRACT = "accept_contract"
    REJECT_CONTRACT = "reject_contract"
    ITEM_WAS_DELIVERED = "item_was_delivered"
    FORFEIT_DISPUTE = "forfeit_dispute"
    COUNTER_DISPUTE = "counter_dispute"
    UPDATE_LISTING = "update_listing"
    UPDATE_PUBLIC_KEY = "update_public_key"
    # Either party
    CALL_TIMEOUT = "call_timeout"


@dataclass
class Call:
    """A single caller-attested invocation against a store."""

    source: bytes
    call_type: CallType
    payload: dict = field(default_factory=dict)
    value: int = 0


@dataclass
class Item:
    value: int = 0
    description: str = ""


@dataclass
class Purchase:
    value: int = 0
    last_block: int = 0
    item: int = 0
    commit: Optional[bytes] = None
    seller_bit: bool = False
    buyer_bit: bool = False
    notes: str = ""
    state: PurchaseState = PurchaseState.NULL
    buyer: bytes = b""
    # Native units currently escrowed for this purchase.
    held_amount: int = 0


@dataclass
class AccountState:
    address: bytes
    balance: int = 0


@dataclass
class GlobalState:
    block_height: int = 0
    timestamp: int = 0


@dataclass
class StoreState:
    seller: bytes
    timeout: int = DEFAULT_TIMEOUT
    public_key: str = ""
    listings: dict[int, Item] = field(default_factory=dict)
    contracts: dict[bytes, Purchase] = field(default_factory=dict)
    accounts: dict[bytes, AccountState] = field(default_factory=dict)
    global_state: GlobalState = field(default_factory=GlobalState)
