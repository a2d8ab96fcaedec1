"""Pytest hooks to generate fixtures (EEST-style)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from purchase_spec.state_transition import TransitionResult, apply_block, apply_call
from purchase_spec.types import Call, StoreState
from tools.fixtures_io import call_to_json, state_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_VECTOR_CASES: dict[str, list[dict[str, Any]]] = {}


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


def _record(
    rel_path: str,
    name: str,
    pre_state: StoreState,
    inputs: dict[str, Any],
    post_state: StoreState,
    result: TransitionResult,
) -> None:
    _STATE_CASES.setdefault(rel_path, []).append(
        {
            "name": name,
            "pre_state": state_to_json(pre_state),
            **inputs,
            "expected": {
                "ok": result.ok,
                "error": result.error.code.name if result.error else None,
                "post_state": state_to_json(post_state),
            },
        }
    )


StateTestGroup = Callable[[str, str, StoreState, Call], tuple[StoreState, TransitionResult]]


@pytest.fixture
def state_test_group() -> StateTestGroup:
    """Apply a call, collect it as a fixture case and hand back the outcome."""

    def _state_test_group(
        rel_path: str, name: str, pre_state: StoreState, call: Call
    ) -> tuple[StoreState, TransitionResult]:
        post_state, result = apply_call(pre_state, call)
        _record(rel_path, name, pre_state, {"call": call_to_json(call)}, post_state, result)
        return post_state, result

    return _state_test_group


BlockTestGroup = Callable[
    [str, str, StoreState, list[Call], Optional[int]], tuple[StoreState, TransitionResult]
]


@pytest.fixture
def block_test_group() -> BlockTestGroup:
    """Apply calls as one atomic block and collect it as a fixture case."""

    def _block_test_group(
        rel_path: str,
        name: str,
        pre_state: StoreState,
        calls: list[Call],
        timestamp: Optional[int] = None,
    ) -> tuple[StoreState, TransitionResult]:
        post_state, result = apply_block(pre_state, calls, timestamp)
        inputs = {"calls": [call_to_json(c) for c in calls], "timestamp": timestamp}
        _record(rel_path, name, pre_state, inputs, post_state, result)
        return post_state, result

    return _block_test_group


@pytest.fixture
def vector_test_group() -> Callable[[str, dict[str, Any]], None]:
    """Collect pre-built test_vectors under a specific fixture path."""

    def _vector_test_group(rel_path: str, vector: dict[str, Any]) -> None:
        _VECTOR_CASES.setdefault(rel_path, []).append(vector)

    return _vector_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))

    for rel_path, vectors in _VECTOR_CASES.items():
        if not vectors:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"test_vectors": vectors}, indent=2))
