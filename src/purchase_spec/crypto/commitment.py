"""Commit-reveal coin flip used to settle disputed purchases.

The buyer commits to a secret bit when disputing a delivery. The seller
answers with a bit in the clear, and the buyer then opens the commitment.
Equal bits pay the buyer, different bits pay the seller.
"""

from __future__ import annotations

import hmac
import secrets

from ..config import COMMITMENT_SIZE, ID_SIZE, NONCE_SIZE
from ..types import Role
from .hash_algorithms import blake3_hash


def encode_opening(bit: bool, purchase_id: bytes, nonce: bytes) -> bytes:
    if len(purchase_id) != ID_SIZE:
        raise ValueError(f"purchase_id must be {ID_SIZE} bytes, got {len(purchase_id)}")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    return (b"\x01" if bit else b"\x00") + purchase_id + nonce


def make_commitment(bit: bool, purchase_id: bytes, nonce: bytes) -> bytes:
    """Commitment to ``bit`` bound to a single purchase."""
    return blake3_hash(encode_opening(bit, purchase_id, nonce))


def verify_opening(commitment: bytes, bit: bool, purchase_id: bytes, nonce: bytes) -> bool:
    if len(commitment) != COMMITMENT_SIZE:
        return False
    return hmac.compare_digest(commitment, make_commitment(bit, purchase_id, nonce))


def random_nonce() -> bytes:
    return secrets.token_bytes(NONCE_SIZE)


def coin_flip_winner(seller_bit: bool, buyer_bit: bool) -> Role:
    if seller_bit != buyer_bit:
        return Role.SELLER
    return Role.BUYER
