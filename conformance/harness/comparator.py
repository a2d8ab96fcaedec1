"""
Outcome comparison for purchase escrow conformance runs.

The expected side always comes from the Python model: either the outcome
recorded in a vector or a store digest computed locally.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

REFERENCE = "purchase-spec"

# Outcome fields compared after a call, in report order.
OUTCOME_FIELDS = ("ok", "error", "state_digest")


@dataclass
class Divergence:
    """One field where an implementation disagrees with the reference model."""
    field: str
    expected: Any
    actual: Any
    client: str
    vector_name: str
    details: Optional[str] = None


@dataclass
class ComparisonResult:
    divergences: List[Divergence] = field(default_factory=list)
    clients_compared: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.divergences

    @property
    def has_divergences(self) -> bool:
        return bool(self.divergences)

    def clients_diverging(self) -> List[str]:
        return sorted({d.client for d in self.divergences})


def outcome_mismatches(expected: Dict[str, Any], actual: Dict[str, Any]) -> List[Tuple[str, Any, Any]]:
    """Return ``(field, expected, actual)`` for every outcome field that differs.

    A vector without a ``state_digest`` leaves the post-state unchecked.
    """
    mismatches = []
    for name in OUTCOME_FIELDS:
        if name not in expected:
            continue
        want = expected[name]
        got = actual.get(name)
        if name == "state_digest" and not want:
            continue
        if want != got:
            mismatches.append((name, want, got))
    return mismatches


class ResultComparator:
    """Checks implementation outcomes against recorded expectations."""

    reference_client = REFERENCE

    def compare_results(
        self,
        expected: Dict[str, Any],
        results: Dict[str, Dict[str, Any]],
        vector_name: str,
    ) -> ComparisonResult:
        """Compare every implementation's call outcome with ``expected``.

        ``expected`` carries ``ok``, ``error`` (an ErrorCode name or None)
        and the post-call ``state_digest``.
        """
        comparison = ComparisonResult(clients_compared=list(results))
        for client, actual in results.items():
            for name, want, got in outcome_mismatches(expected, actual):
                comparison.divergences.append(Divergence(
                    field=name,
                    expected=want,
                    actual=got,
                    client=client,
                    vector_name=vector_name,
                    details=actual.get("message"),
                ))
        return comparison

    def compare_state_digests(
        self,
        reference_digest: str,
        digests: Dict[str, Optional[str]],
        vector_name: str,
    ) -> ComparisonResult:
        """Check that every implementation loaded the pre-state faithfully."""
        comparison = ComparisonResult(clients_compared=list(digests))
        for client, digest in digests.items():
            if digest == reference_digest:
                continue
            comparison.divergences.append(Divergence(
                field="pre_state_digest",
                expected=reference_digest,
                actual=digest,
                client=client,
                vector_name=vector_name,
                details="store differs after load" if digest else "load failed",
            ))
        return comparison
