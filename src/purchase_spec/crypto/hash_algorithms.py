"""Hash algorithm assignments for the purchase protocol."""

from __future__ import annotations

from dataclasses import dataclass

from blake3 import blake3

from ..config import ID_SIZE, MAX_U64


HASH_SIZE = 32


@dataclass(frozen=True)
class HashAssignment:
    purpose: str
    algorithm: str
    output_size: int
    input_spec: str


ASSIGNMENTS = [
    HashAssignment("purchase_id", "BLAKE3", 32, "u64_be(timestamp) || buyer"),
    HashAssignment("commitment", "BLAKE3", 32, "bit(1 byte) || purchase_id || nonce"),
    HashAssignment("state_digest", "BLAKE3", 32, "canonical post_state bytes"),
]


def blake3_hash(data: bytes) -> bytes:
    return blake3(data).digest()


def u64_be(value: int) -> bytes:
    if value < 0 or value > MAX_U64:
        raise ValueError("u64 out of range")
    return int(value).to_bytes(8, "big", signed=False)


def purchase_id(buyer: bytes, timestamp: int) -> bytes:
    """Derive a purchase identifier from the request time and the buyer.

    Two requests by the same buyer inside one timestamp derive the same id.
    """
    return blake3(u64_be(timestamp) + buyer).digest(length=ID_SIZE)
