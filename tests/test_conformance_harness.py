"""Conformance harness configuration and comparison."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "conformance" / "harness"))

from comparator import ResultComparator  # noqa: E402
from config import HarnessConfig, parse_endpoints  # noqa: E402


def test_parse_endpoints() -> None:
    clients = parse_endpoints("go=http://localhost:9000, rust=http://localhost:9001", timeout=5.0)
    assert set(clients) == {"go", "rust"}
    assert clients["rust"].endpoint == "http://localhost:9001"
    assert clients["go"].timeout == 5.0


def test_parse_endpoints_rejects_bare_url() -> None:
    with pytest.raises(ValueError):
        parse_endpoints("http://localhost:9000")


def test_harness_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IMPL_ENDPOINTS", "ref=http://127.0.0.1:8081")
    monkeypatch.setenv("VECTOR_DIR", "/tmp/vectors")
    monkeypatch.setenv("VERBOSE", "yes")
    monkeypatch.delenv("STOP_ON_FIRST_FAILURE", raising=False)
    config = HarnessConfig.from_env()
    assert list(config.get_enabled_clients()) == ["ref"]
    assert config.vector_dir == "/tmp/vectors"
    assert config.verbose
    assert not config.stop_on_first_failure


def test_compare_results_flags_each_field() -> None:
    expected = {"ok": False, "error": "INVALID_STATE", "state_digest": "aa"}
    results = {
        "good": {"ok": False, "error": "INVALID_STATE", "state_digest": "aa"},
        "bad": {"ok": True, "error": None, "state_digest": "bb"},
    }
    comparison = ResultComparator().compare_results(expected, results, "v1")
    assert not comparison.success
    assert {d.client for d in comparison.divergences} == {"bad"}
    assert {d.field for d in comparison.divergences} == {"ok", "error", "state_digest"}


def test_compare_state_digests() -> None:
    comparison = ResultComparator().compare_state_digests("aa", {"x": "aa", "y": None}, "load")
    assert comparison.clients_compared == ["x", "y"]
    assert [d.client for d in comparison.divergences] == ["y"]
