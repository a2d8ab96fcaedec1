"""Purchase escrow error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    ARBITRATION = 0x05
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation
    INVALID_TYPE = 0x0100
    INVALID_PAYLOAD = 0x0101
    INVALID_AMOUNT = 0x0102
    INVALID_TIMESTAMP = 0x0103
    VALUE_MISMATCH = 0x0104

    # Authorization
    UNAUTHORIZED = 0x0200

    # Resource
    INSUFFICIENT_BALANCE = 0x0300
    OVERFLOW = 0x0301

    # State
    INVALID_STATE = 0x0400
    ITEM_NOT_FOUND = 0x0401
    PURCHASE_EXISTS = 0x0402
    TIMEOUT_NOT_YET_ELAPSED = 0x0403

    # Arbitration
    COMMITMENT_MISMATCH = 0x0500

    # Internal
    INTERNAL_ERROR = 0xFF00
    NOT_IMPLEMENTED = 0xFF01

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class SpecError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__"))
_frozen_setattr = SpecError.__setattr__


def _spec_error_setattr(self: SpecError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


SpecError.__setattr__ = _spec_error_setattr  # type: ignore[method-assign]
