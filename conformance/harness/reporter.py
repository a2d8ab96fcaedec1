"""
Conformance report assembly.

Results are tallied per suite, per implementation and per call type so a
failing implementation can be traced to the operation it gets wrong.
"""

import json
import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from comparator import REFERENCE, ComparisonResult, Divergence

logger = logging.getLogger(__name__)

MAX_LOGGED_DIVERGENCES = 10


@dataclass
class VectorResult:
    vector_name: str
    suite_name: str
    call_type: Optional[str]
    passed: bool
    elapsed_ms: float
    comparison: Optional[ComparisonResult] = None
    error: Optional[str] = None


@dataclass
class SuiteResult:
    suite_name: str
    results: List[VectorResult] = field(default_factory=list)
    skipped: int = 0
    elapsed_ms: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def pass_rate(self) -> float:
        if not self.results:
            return 0.0
        return self.passed / self.total * 100


@dataclass
class ConformanceReport:
    timestamp: str
    clients: List[str]
    suites: List[SuiteResult]
    elapsed_ms: float

    @property
    def total(self) -> int:
        return sum(s.total for s in self.suites)

    @property
    def failed(self) -> int:
        return sum(s.failed for s in self.suites)

    @property
    def divergences(self) -> List[Divergence]:
        found: List[Divergence] = []
        for suite in self.suites:
            for result in suite.results:
                if result.comparison:
                    found.extend(result.comparison.divergences)
        return found

    def failures_by_client(self) -> Dict[str, int]:
        """Number of vectors each implementation diverged on."""
        counts: Counter = Counter()
        for suite in self.suites:
            for result in suite.results:
                if result.comparison:
                    counts.update(result.comparison.clients_diverging())
        return {client: counts.get(client, 0) for client in self.clients}

    def failures_by_call_type(self) -> Dict[str, int]:
        counts: Counter = Counter(
            r.call_type or "load"
            for s in self.suites
            for r in s.results
            if not r.passed
        )
        return dict(sorted(counts.items()))


class ReportGenerator:
    """Builds, logs and writes conformance reports."""

    def __init__(self, result_dir: str):
        self.result_dir = result_dir
        os.makedirs(result_dir, exist_ok=True)

    def generate_report(
        self, suites: List[SuiteResult], clients: List[str], elapsed_ms: float
    ) -> ConformanceReport:
        return ConformanceReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            clients=clients,
            suites=suites,
            elapsed_ms=elapsed_ms,
        )

    def write_json_report(self, report: ConformanceReport, filename: str = "conformance-report.json") -> str:
        path = os.path.join(self.result_dir, filename)
        with open(path, "w") as f:
            json.dump(report_to_dict(report), f, indent=2)
        return path

    def log_summary(self, report: ConformanceReport) -> None:
        logger.info(f"{report.total - report.failed}/{report.total} vectors agree with {REFERENCE}")
        for client, failures in report.failures_by_client().items():
            logger.info(f"  {client}: {failures} diverging vectors")
        for call_type, failures in report.failures_by_call_type().items():
            logger.info(f"  {call_type}: {failures} failing vectors")

        divergences = report.divergences
        for div in divergences[:MAX_LOGGED_DIVERGENCES]:
            logger.warning(
                f"{div.vector_name} [{div.client}] {div.field}: "
                f"expected {div.expected}, got {div.actual}"
            )
        if len(divergences) > MAX_LOGGED_DIVERGENCES:
            logger.warning(f"... and {len(divergences) - MAX_LOGGED_DIVERGENCES} more")


def report_to_dict(report: ConformanceReport) -> Dict[str, Any]:
    return {
        "timestamp": report.timestamp,
        "reference": REFERENCE,
        "clients": report.clients,
        "total": report.total,
        "failed": report.failed,
        "elapsed_ms": report.elapsed_ms,
        "failures_by_client": report.failures_by_client(),
        "failures_by_call_type": report.failures_by_call_type(),
        "suites": [
            {
                "name": s.suite_name,
                "total": s.total,
                "passed": s.passed,
                "skipped": s.skipped,
                "pass_rate": s.pass_rate,
                "failing": [r.vector_name for r in s.results if not r.passed],
            }
            for s in report.suites
        ],
        "divergences": [
            {
                "vector": d.vector_name,
                "client": d.client,
                "field": d.field,
                "expected": str(d.expected),
                "actual": str(d.actual),
                "details": d.details,
            }
            for d in report.divergences
        ],
    }
