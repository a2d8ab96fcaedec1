"""Helpers to serialize/deserialize fixtures for the purchase model."""

from __future__ import annotations

from typing import Any

from purchase_spec.types import (
    AccountState,
    Call,
    CallType,
    GlobalState,
    Item,
    Purchase,
    PurchaseState,
    StoreState,
)

# Payload fields carried as raw bytes on the wire.
_BYTES_FIELDS = ("purchase_id", "commitment", "nonce")


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def purchase_to_json(pid: bytes, c: Purchase) -> dict[str, Any]:
    return {
        "id": _bytes_to_hex(pid),
        "state": c.state.value,
        "value": c.value,
        "held_amount": c.held_amount,
        "last_block": c.last_block,
        "item": c.item,
        "commit": _bytes_to_hex(c.commit) if c.commit is not None else None,
        "seller_bit": c.seller_bit,
        "buyer_bit": c.buyer_bit,
        "notes": c.notes,
        "buyer": _bytes_to_hex(c.buyer),
    }


def state_to_json(state: StoreState) -> dict[str, Any]:
    return {
        "seller": _bytes_to_hex(state.seller),
        "timeout": state.timeout,
        "public_key": state.public_key,
        "global_state": {
            "block_height": state.global_state.block_height,
            "timestamp": state.global_state.timestamp,
        },
        "accounts": [
            {"address": _bytes_to_hex(a.address), "balance": a.balance}
            for a in state.accounts.values()
        ],
        "listings": [
            {"item_id": item_id, "value": item.value, "description": item.description}
            for item_id, item in state.listings.items()
        ],
        "contracts": [purchase_to_json(pid, c) for pid, c in state.contracts.items()],
    }


def state_from_json(data: dict[str, Any]) -> StoreState:
    gs = data.get("global_state", {})
    state = StoreState(
        seller=_hex_to_bytes(data["seller"]),
        timeout=data.get("timeout", 0),
        public_key=data.get("public_key", ""),
        global_state=GlobalState(
            block_height=gs.get("block_height", 0),
            timestamp=gs.get("timestamp", 0),
        ),
    )

    for a in data.get("accounts", []):
        addr = _hex_to_bytes(a["address"])
        state.accounts[addr] = AccountState(address=addr, balance=a.get("balance", 0))

    for entry in data.get("listings", []):
        state.listings[int(entry["item_id"])] = Item(
            value=entry.get("value", 0),
            description=entry.get("description", ""),
        )

    for c in data.get("contracts", []):
        commit = c.get("commit")
        state.contracts[_hex_to_bytes(c["id"])] = Purchase(
            value=c.get("value", 0),
            last_block=c.get("last_block", 0),
            item=c.get("item", 0),
            commit=_hex_to_bytes(commit) if commit is not None else None,
            seller_bit=c.get("seller_bit", False),
            buyer_bit=c.get("buyer_bit", False),
            notes=c.get("notes", ""),
            state=PurchaseState(c.get("state", "null")),
            buyer=_hex_to_bytes(c.get("buyer", "")),
            held_amount=c.get("held_amount", 0),
        )

    return state


def call_to_json(call: Call) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in call.payload.items():
        if key in _BYTES_FIELDS and isinstance(value, (bytes, bytearray)):
            payload[key] = _bytes_to_hex(bytes(value))
        else:
            payload[key] = value
    return {
        "source": _bytes_to_hex(call.source),
        "call_type": call.call_type.value,
        "payload": payload,
        "value": call.value,
    }


def call_from_json(data: dict[str, Any]) -> Call:
    payload: dict[str, Any] = {}
    for key, value in data.get("payload", {}).items():
        if key in _BYTES_FIELDS and isinstance(value, str):
            payload[key] = _hex_to_bytes(value)
        else:
            payload[key] = value
    return Call(
        source=_hex_to_bytes(data["source"]),
        call_type=CallType(data["call_type"]),
        payload=payload,
        value=data.get("value", 0),
    )
