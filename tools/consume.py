"""Consume fixtures and replay them through the Python model."""

from __future__ import annotations

import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from purchase_spec.state_digest import compute_state_digest  # noqa: E402
from purchase_spec.state_transition import apply_block, apply_call  # noqa: E402
from fixtures_io import call_from_json, state_from_json, state_to_json  # noqa: E402


def check_state_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())

    for case in data.get("cases", []):
        pre_state = state_from_json(case["pre_state"])
        if "calls" in case:
            calls = [call_from_json(c) for c in case["calls"]]
            post_state, result = apply_block(pre_state, calls, case.get("timestamp"))
        else:
            post_state, result = apply_call(pre_state, call_from_json(case["call"]))

        expected = case["expected"]
        if result.ok != expected["ok"]:
            failures.append(f"{case['name']}: ok_mismatch")
            continue

        actual_err = result.error.code.name if result.error else None
        if actual_err != expected["error"]:
            failures.append(f"{case['name']}: error_mismatch")
            continue

        expected_digest = compute_state_digest(expected["post_state"])
        if compute_state_digest(state_to_json(post_state)) != expected_digest:
            failures.append(f"{case['name']}: state_digest_mismatch")

    return failures


def main() -> None:
    fixtures = Path(sys.argv[1]) if len(sys.argv) > 1 else ROOT / "fixtures"

    failures: list[str] = []
    checked = 0
    for path in sorted(fixtures.rglob("*.json")):
        failures.extend(check_state_cases(path))
        checked += 1

    if failures:
        for f in failures:
            print("FAIL", f)
        raise SystemExit(1)

    print(f"All fixtures passed ({checked} files)")


if __name__ == "__main__":
    main()
