#!/usr/bin/env python3
"""Convert purchase fixtures into client-consumable YAML vectors.

Each state case becomes a vector with the serialized pre-state, the call and
the expected ``ok``/``error``/``state_digest`` an implementation must
reproduce.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from purchase_spec.state_digest import compute_state_digest  # noqa: E402
from yaml_dump import write_yaml  # noqa: E402


def case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case["expected"]
    return {
        "name": case["name"],
        "pre_state": case["pre_state"],
        "call": case["call"],
        "expected": {
            "ok": expected["ok"],
            "error": expected["error"],
            "state_digest": compute_state_digest(expected["post_state"]),
        },
    }


def convert(fixtures: Path, out: Path) -> int:
    written = 0
    for path in sorted(fixtures.rglob("*.json")):
        data = json.loads(path.read_text())
        # Block cases replay through apply_block and have no single-call vector.
        cases = [c for c in data.get("cases", []) if "call" in c]
        if not cases:
            continue
        target = out / path.relative_to(fixtures).with_suffix(".yaml")
        write_yaml(target, {"test_vectors": [case_to_vector(c) for c in cases]})
        written += 1
    return written


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert fixtures into YAML vectors")
    parser.add_argument("--fixtures", default=str(ROOT / "fixtures"))
    parser.add_argument("--out", default=str(ROOT / "vectors"))
    args = parser.parse_args()

    count = convert(Path(args.fixtures), Path(args.out))
    print(f"Wrote {count} vector suites to {args.out}")


if __name__ == "__main__":
    main()
