"""Canonical store digest implementation (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3

from .types import PurchaseState

_STATE_TAGS = {s.value: i for i, s in enumerate(PurchaseState)}


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _u128_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u128 must be non-negative")
    return int(value).to_bytes(16, "big", signed=False)


def _var_bytes(data: bytes) -> bytes:
    return _u64_be(len(data)) + data


def _fixed32(value: str, what: str) -> bytes:
    raw = _hex_to_bytes(value)
    if len(raw) != 32:
        raise ValueError(f"{what} must be 32 bytes, got {len(raw)}")
    return raw


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute store digest v1 from a serialized post_state.

    Fields are encoded in canonical order and hashed with BLAKE3-256.
    Accounts sort by address, listings by item id, purchases by id.
    """
    if not isinstance(post_state, dict):
        raise TypeError("post_state must be a dict")

    buf = bytearray()
    gs = post_state.get("global_state", {})
    buf += _u64_be(int(gs.get("block_height", 0)))
    buf += _u64_be(int(gs.get("timestamp", 0)))

    buf += _var_bytes(_hex_to_bytes(post_state.get("seller", "")))
    buf += _u64_be(int(post_state.get("timeout", 0)))
    buf += _var_bytes(post_state.get("public_key", "").encode("utf-8"))

    accounts = sorted(
        ((_fixed32(a.get("address", ""), "address"), a) for a in post_state.get("accounts", [])),
        key=lambda x: x[0],
    )
    buf += _u64_be(len(accounts))
    for addr, acc in accounts:
        buf += addr
        buf += _u128_be(int(acc.get("balance", 0)))

    listings = sorted(post_state.get("listings", []), key=lambda x: int(x["item_id"]))
    buf += _u64_be(len(listings))
    for item in listings:
        buf += _u64_be(int(item["item_id"]))
        buf += _u128_be(int(item.get("value", 0)))
        buf += _var_bytes(item.get("description", "").encode("utf-8"))

    purchases = sorted(
        ((_fixed32(c.get("id", ""), "purchase id"), c) for c in post_state.get("contracts", [])),
        key=lambda x: x[0],
    )
    buf += _u64_be(len(purchases))
    for pid, c in purchases:
        buf += pid
        buf += bytes([_STATE_TAGS[c.get("state", "null")]])
        buf += _u128_be(int(c.get("value", 0)))
        buf += _u128_be(int(c.get("held_amount", 0)))
        buf += _u64_be(int(c.get("last_block", 0)))
        buf += _u64_be(int(c.get("item", 0)))
        buf += _var_bytes(_hex_to_bytes(c.get("commit")))
        buf += bytes([1 if c.get("seller_bit") else 0, 1 if c.get("buyer_bit") else 0])
        buf += _var_bytes(_hex_to_bytes(c.get("buyer", "")))
        buf += _var_bytes(c.get("notes", "").encode("utf-8"))

    return blake3(buf).hexdigest()
