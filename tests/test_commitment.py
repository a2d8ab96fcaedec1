"""Commit-reveal primitives."""

from __future__ import annotations

import pytest
from blake3 import blake3

from purchase_spec.crypto.commitment import (
    coin_flip_winner,
    encode_opening,
    make_commitment,
    random_nonce,
    verify_opening,
)
from purchase_spec.crypto.hash_algorithms import ASSIGNMENTS, purchase_id, u64_be
from purchase_spec.test_accounts import ALICE, BOB
from purchase_spec.types import Role

PID = purchase_id(ALICE, 1_700_000_000)
NONCE = b"\x42" * 32


def test_commitment_is_blake3_of_packed_opening() -> None:
    packed = b"\x01" + PID + NONCE
    assert encode_opening(True, PID, NONCE) == packed
    assert make_commitment(True, PID, NONCE) == blake3(packed).digest()
    assert encode_opening(False, PID, NONCE)[0] == 0


def test_commitment_binds_bit_nonce_and_purchase() -> None:
    c = make_commitment(True, PID, NONCE)
    assert verify_opening(c, True, PID, NONCE)
    assert not verify_opening(c, False, PID, NONCE)
    assert not verify_opening(c, True, PID, b"\x43" * 32)
    assert not verify_opening(c, True, purchase_id(ALICE, 1_700_000_001), NONCE)


def test_verify_opening_rejects_wrong_size_commitment() -> None:
    c = make_commitment(True, PID, NONCE)
    assert not verify_opening(c[:31], True, PID, NONCE)


def test_encode_opening_size_checks() -> None:
    with pytest.raises(ValueError):
        encode_opening(True, PID[:31], NONCE)
    with pytest.raises(ValueError):
        encode_opening(True, PID, NONCE + b"\x00")


def test_random_nonce_is_fresh() -> None:
    a, b = random_nonce(), random_nonce()
    assert len(a) == 32
    assert a != b


@pytest.mark.parametrize(
    "seller_bit,buyer_bit,winner",
    [
        (False, False, Role.BUYER),
        (True, True, Role.BUYER),
        (False, True, Role.SELLER),
        (True, False, Role.SELLER),
    ],
)
def test_coin_flip_winner(seller_bit: bool, buyer_bit: bool, winner: Role) -> None:
    assert coin_flip_winner(seller_bit, buyer_bit) == winner


def test_purchase_id_depends_on_buyer_and_time() -> None:
    assert purchase_id(ALICE, 5) == blake3(u64_be(5) + ALICE).digest()
    assert purchase_id(ALICE, 5) == purchase_id(ALICE, 5)
    assert purchase_id(ALICE, 5) != purchase_id(ALICE, 6)
    assert purchase_id(ALICE, 5) != purchase_id(BOB, 5)


def test_hash_assignments(vector_test_group) -> None:
    vector_test_group(
        "crypto/hash_assignments.json",
        {
            "name": "hash_assignments",
            "runnable": False,
            "input": {"kind": "reference"},
            "expected": {a.purpose: f"{a.algorithm}-{a.output_size * 8}" for a in ASSIGNMENTS},
        },
    )
    assert {a.purpose for a in ASSIGNMENTS} == {"purchase_id", "commitment", "state_digest"}


def test_commitment_vector(vector_test_group) -> None:
    vector_test_group(
        "crypto/commitment.json",
        {
            "name": "commitment_true_fixed_nonce",
            "input": {"bit": True, "purchase_id": PID.hex(), "nonce": NONCE.hex()},
            "expected": {"commitment": make_commitment(True, PID, NONCE).hex()},
        },
    )
