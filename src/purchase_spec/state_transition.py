"""State transition entrypoints for the purchase escrow model."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .config import ID_SIZE, MAX_U64
from .crypto.hash_algorithms import purchase_id
from .errors import ErrorCode, SpecError
from .types import Call, CallType, StoreState
from .tx import dispute as tx_dispute
from .tx import listing as tx_listing
from .tx import purchase as tx_purchase
from .tx import timeout as tx_timeout

logger = logging.getLogger(__name__)

_PURCHASE_TYPES = frozenset({
    CallType.REQUEST_PURCHASE,
    CallType.ABORT,
    CallType.REJECT_CONTRACT,
    CallType.ACCEPT_CONTRACT,
    CallType.ITEM_WAS_DELIVERED,
    CallType.CONFIRM_DELIVERY,
})

_DISPUTE_TYPES = frozenset({
    CallType.DISPUTE_DELIVERY,
    CallType.FORFEIT_DISPUTE,
    CallType.COUNTER_DISPUTE,
    CallType.OPEN_COMMITMENT,
})

_LISTING_TYPES = frozenset({
    CallType.UPDATE_LISTING,
    CallType.UPDATE_PUBLIC_KEY,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(
        self,
        ok: bool,
        error: Optional[SpecError] = None,
        return_value: Optional[bytes] = None,
    ):
        self.ok = ok
        self.error = error
        self.return_value = return_value

    @classmethod
    def success(cls, return_value: Optional[bytes] = None) -> "TransitionResult":
        return cls(True, None, return_value)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)


def _module_for(call: Call):
    ct = call.call_type
    if ct in _PURCHASE_TYPES:
        return tx_purchase
    if ct in _DISPUTE_TYPES:
        return tx_dispute
    if ct == CallType.CALL_TIMEOUT:
        return tx_timeout
    if ct in _LISTING_TYPES:
        return tx_listing

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"call not implemented for {ct}")


def _verify_common(state: StoreState, call: Call) -> None:
    if not isinstance(call.call_type, CallType):
        raise SpecError(ErrorCode.INVALID_TYPE, "unknown call type")
    if not isinstance(call.source, bytes) or len(call.source) != ID_SIZE:
        raise SpecError(ErrorCode.UNAUTHORIZED, "caller identity must be a 32-byte address")
    if isinstance(call.value, bool) or not isinstance(call.value, int):
        raise SpecError(ErrorCode.INVALID_AMOUNT, "attached value must be an integer")
    if call.value < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "attached value negative")


def verify_call(state: StoreState, call: Call) -> TransitionResult:
    """Check every guard of ``call`` without touching ``state``."""
    try:
        _verify_common(state, call)
        _module_for(call).verify(state, call)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def apply_call(state: StoreState, call: Call) -> tuple[StoreState, TransitionResult]:
    """Apply ``call`` after verification.

    All-or-nothing: on any guard failure the original state is returned
    unchanged and the attached value stays with the caller.
    """
    try:
        _verify_common(state, call)
        module = _module_for(call)
        module.verify(state, call)
    except SpecError as exc:
        logger.info(f"rejected {call.call_type}: {exc}")
        return state, TransitionResult.failure(exc)

    try:
        working = module.apply(state, call)
    except SpecError as exc:
        logger.info(f"execution failed {call.call_type}: {exc}")
        return state, TransitionResult.failure(exc)

    return_value = None
    if call.call_type == CallType.REQUEST_PURCHASE:
        return_value = purchase_id(call.source, state.global_state.timestamp)
    logger.debug(f"applied {call.call_type.value} from {call.source.hex()[:16]}")
    return working, TransitionResult.success(return_value)


def advance_time(state: StoreState, seconds: int) -> StoreState:
    """Move the ledger clock forward. Time never moves a purchase by itself."""
    if seconds < 0:
        raise SpecError(ErrorCode.INVALID_TIMESTAMP, "time cannot move backwards")
    timestamp = state.global_state.timestamp + seconds
    if timestamp > MAX_U64:
        raise SpecError(ErrorCode.INVALID_TIMESTAMP, "timestamp overflow")
    return replace(state, global_state=replace(state.global_state, timestamp=timestamp))


def apply_block(
    state: StoreState, calls: list[Call], timestamp: Optional[int] = None
) -> tuple[StoreState, TransitionResult]:
    """Apply a block worth of calls in order (block-atomic semantics).

    The block timestamp, when given, must not precede the current one. If any
    call fails, the entire block is rejected and the state is unchanged.
    """
    working = state
    if timestamp is not None:
        if timestamp < state.global_state.timestamp:
            return state, TransitionResult.failure(
                SpecError(ErrorCode.INVALID_TIMESTAMP, "block timestamp moves backwards")
            )
        try:
            working = advance_time(state, timestamp - state.global_state.timestamp)
        except SpecError as exc:
            return state, TransitionResult.failure(exc)

    for call in calls:
        working, result = apply_call(working, call)
        if not result.ok:
            return state, result

    working = replace(
        working,
        global_state=replace(
            working.global_state, block_height=working.global_state.block_height + 1
        ),
    )
    return working, TransitionResult.success()
