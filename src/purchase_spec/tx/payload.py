"""Payload decoding helpers shared by the call modules."""

from __future__ import annotations

from ..config import ID_SIZE
from ..errors import ErrorCode, SpecError
from ..ledger import require_funds
from ..types import Call, StoreState


def to_bytes(v: object) -> bytes:
    if isinstance(v, bytes):
        return v
    if isinstance(v, bytearray):
        return bytes(v)
    if isinstance(v, (list, tuple)):
        try:
            return bytes(v)
        except (TypeError, ValueError):
            raise SpecError(ErrorCode.INVALID_PAYLOAD, "byte values must be ints in 0..255")
    raise SpecError(ErrorCode.INVALID_PAYLOAD, f"expected bytes, got {type(v).__name__}")


def fixed_bytes(p: dict, key: str, size: int) -> bytes:
    if key not in p:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"missing {key}")
    raw = to_bytes(p[key])
    if len(raw) != size:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be {size} bytes")
    return raw


def purchase_id(p: dict) -> bytes:
    return fixed_bytes(p, "purchase_id", ID_SIZE)


def bit(p: dict, key: str = "bit") -> bool:
    v = p.get(key)
    # bool only; 0/1 ints are rejected so a bit cannot be confused with a count.
    if not isinstance(v, bool):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be a bool")
    return v


def text(p: dict, key: str, max_len: int) -> str:
    v = p.get(key, "")
    if not isinstance(v, str):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be a string")
    if len(v) > max_len:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} too long")
    return v


def integer(p: dict, key: str) -> int:
    v = p.get(key)
    if isinstance(v, bool) or not isinstance(v, int):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be an integer")
    return v


def require_value(state: StoreState, call: Call, expected: int) -> None:
    """Attached value must match exactly and be covered by the caller's balance."""
    if call.value != expected:
        raise SpecError(
            ErrorCode.VALUE_MISMATCH,
            f"attached value {call.value} != required {expected}",
        )
    if expected:
        require_funds(state, call.source, expected)
