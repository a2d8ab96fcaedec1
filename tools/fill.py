"""Generate purchase fixtures by running the test suite with ``--output``.

Usage: fill.py [OUT_DIR] [-- extra pytest args]
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def main(argv: list[str]) -> int:
    out = Path(argv[0]) if argv and argv[0] != "--" else ROOT / "fixtures"
    extra = argv[argv.index("--") + 1:] if "--" in argv else []

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])
    cmd = [sys.executable, "-m", "pytest", str(ROOT / "tests"), "-q", "--output", str(out), *extra]
    print("Running:", " ".join(cmd))
    return subprocess.call(cmd, env=env, cwd=str(ROOT))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
