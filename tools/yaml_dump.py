"""YAML output for conformance vector suites."""

from __future__ import annotations

from pathlib import Path

import yaml


class VectorDumper(yaml.SafeDumper):
    """Plain scalars, and no anchors for the repeated pre-states."""

    def ignore_aliases(self, data: object) -> bool:
        return True


def dump_yaml(data: dict) -> str:
    return yaml.dump(data, Dumper=VectorDumper, sort_keys=False, width=4096)


def write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_yaml(data))
