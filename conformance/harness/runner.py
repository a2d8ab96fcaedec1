#!/usr/bin/env python3
"""
Purchase escrow conformance runner.

Replays conformance vectors against external implementations and reports every
place their outcome or resulting store differs from the Python reference model.

Each implementation exposes:
  POST /state/load     {pre_state}   -> {"success", "state_digest"}
  POST /call/execute   {call}        -> {"ok", "error", "state_digest"?}
  GET  /state/digest                 -> {"state_digest"}
"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp
import click
import yaml

from purchase_spec.state_digest import compute_state_digest

from comparator import ComparisonResult, ResultComparator
from config import ClientConfig, HarnessConfig, parse_endpoints
from reporter import ConformanceReport, ReportGenerator, SuiteResult, VectorResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

VECTOR_SUFFIXES = (".yaml", ".yml", ".json")


class ImplementationClient:
    """Speaks the conformance protocol to one implementation."""

    def __init__(self, config: ClientConfig, session: aiohttp.ClientSession):
        self.config = config
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=config.timeout)

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.config.endpoint}{path}"
        async with self.session.request(method, url, json=body, timeout=self.timeout) as resp:
            return await resp.json()

    async def load_state(self, state: Dict[str, Any]) -> Optional[str]:
        """Replace the implementation's store; returns its digest, or None."""
        try:
            data = await self._request("POST", "/state/load", state)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[{self.config.name}] load failed: {e}")
            return None
        return data.get("state_digest") if data.get("success") else None

    async def state_digest(self) -> Optional[str]:
        try:
            data = await self._request("GET", "/state/digest")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[{self.config.name}] digest failed: {e}")
            return None
        return data.get("state_digest")

    async def execute(self, call: Dict[str, Any]) -> Dict[str, Any]:
        """Run one call; the post-call digest is fetched if not returned inline."""
        try:
            outcome = await self._request("POST", "/call/execute", call)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[{self.config.name}] execute failed: {e}")
            return {"ok": False, "error": "TRANSPORT", "message": str(e)}
        if "state_digest" not in outcome:
            outcome["state_digest"] = await self.state_digest()
        return outcome


class ConformanceHarness:
    def __init__(self, config: HarnessConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self.clients: Dict[str, ImplementationClient] = {}
        self.comparator = ResultComparator()
        self.reporter = ReportGenerator(config.result_dir)

    async def __aenter__(self) -> "ConformanceHarness":
        self.session = aiohttp.ClientSession()
        for name, client_config in self.config.get_enabled_clients().items():
            self.clients[name] = ImplementationClient(client_config, self.session)
            logger.info(f"Using {name} at {client_config.endpoint}")
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self.session:
            await self.session.close()

    async def _gather(self, calls) -> Dict[str, Any]:
        names = list(self.clients)
        results = await asyncio.gather(*[calls(self.clients[n]) for n in names])
        return dict(zip(names, results))

    async def load_everywhere(self, pre_state: Dict[str, Any], vector_name: str) -> ComparisonResult:
        digests = await self._gather(lambda c: c.load_state(pre_state))
        return self.comparator.compare_state_digests(
            compute_state_digest(pre_state), digests, vector_name
        )

    async def run_vector(self, vector: Dict[str, Any], suite_name: str) -> VectorResult:
        name = vector.get("name", "unknown")
        call = vector.get("call")
        call_type = call.get("call_type") if call else None
        start = time.monotonic()

        def done(comparison: Optional[ComparisonResult], error: Optional[str] = None) -> VectorResult:
            return VectorResult(
                vector_name=name,
                suite_name=suite_name,
                call_type=call_type,
                passed=comparison is None or comparison.success,
                elapsed_ms=(time.monotonic() - start) * 1000,
                comparison=comparison,
                error=error,
            )

        if "pre_state" in vector:
            loaded = await self.load_everywhere(vector["pre_state"], name)
            if loaded.has_divergences:
                return done(loaded, "pre-state load diverged")

        if not call:
            return done(None)

        outcomes = await self._gather(lambda c: c.execute(call))
        return done(self.comparator.compare_results(vector.get("expected", {}), outcomes, name))

    async def run_suite(self, path: Path) -> SuiteResult:
        suite = SuiteResult(suite_name=path.stem)
        start = time.monotonic()
        vectors = [v for v in load_suite(path).get("test_vectors", []) if v.get("runnable", True)]
        logger.info(f"Suite {suite.suite_name}: {len(vectors)} vectors")

        for index, vector in enumerate(vectors):
            result = await self.run_vector(vector, suite.suite_name)
            suite.results.append(result)
            logger.debug(f"  [{'PASS' if result.passed else 'FAIL'}] {result.vector_name}")
            if not result.passed and self.config.stop_on_first_failure:
                suite.skipped = len(vectors) - index - 1
                break

        suite.elapsed_ms = (time.monotonic() - start) * 1000
        return suite

    async def run_all(self, paths: List[Path]) -> ConformanceReport:
        start = time.monotonic()
        suites: List[SuiteResult] = []
        for path in paths:
            suites.append(await self.run_suite(path))
            if suites[-1].failed and self.config.stop_on_first_failure:
                break
        return self.reporter.generate_report(
            suites, list(self.clients), (time.monotonic() - start) * 1000
        )


def load_suite(path: Path) -> Dict[str, Any]:
    with path.open() as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f) or {}


def find_vector_files(root: Path) -> List[Path]:
    if root.is_file():
        return [root]
    return sorted(p for p in root.rglob("*") if p.suffix in VECTOR_SUFFIXES)


@click.command()
@click.option("--vectors", default=None, help="Vector file or directory (default: $VECTOR_DIR)")
@click.option(
    "--endpoint",
    "endpoints",
    multiple=True,
    help="Implementation as name=url (repeatable, overrides $IMPL_ENDPOINTS)",
)
@click.option("--result-dir", default=None, help="Directory to write the JSON report")
@click.option("--verbose", is_flag=True, help="Log every vector")
@click.option("--stop-on-failure", is_flag=True, help="Stop at the first failing vector")
def main(
    vectors: Optional[str],
    endpoints: tuple,
    result_dir: Optional[str],
    verbose: bool,
    stop_on_failure: bool,
) -> None:
    """Run purchase escrow conformance vectors against implementations."""
    config = HarnessConfig.from_env()
    if endpoints:
        config.clients = parse_endpoints(",".join(endpoints), config.request_timeout)
    if result_dir:
        config.result_dir = result_dir
    config.verbose = config.verbose or verbose
    config.stop_on_first_failure = config.stop_on_first_failure or stop_on_failure
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    paths = find_vector_files(Path(vectors or config.vector_dir))
    if not paths:
        logger.error(f"No vector files under {vectors or config.vector_dir}")
        sys.exit(1)
    if not config.get_enabled_clients():
        logger.error("No implementation endpoints configured")
        sys.exit(1)

    async def run() -> int:
        async with ConformanceHarness(config) as harness:
            report = await harness.run_all(paths)
        harness.reporter.log_summary(report)
        logger.info(f"Report written to {harness.reporter.write_json_report(report)}")
        return 0 if report.failed == 0 else 1

    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
