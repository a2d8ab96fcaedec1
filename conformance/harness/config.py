"""
Harness configuration, read from the environment and overridden by CLI flags.

  IMPL_ENDPOINTS         name=url[,name=url...]
  VECTOR_DIR             vectors to replay (default: vectors)
  RESULT_DIR             where the JSON report goes (default: results)
  REQUEST_TIMEOUT        per-request seconds (default: 30)
  VERBOSE                log every vector
  STOP_ON_FIRST_FAILURE  stop at the first diverging vector
"""

import os
from dataclasses import dataclass, field
from typing import Dict

DEFAULT_ENDPOINTS = "reference=http://localhost:8081"


@dataclass
class ClientConfig:
    """One implementation under test."""
    name: str
    endpoint: str
    enabled: bool = True
    timeout: float = 30.0


@dataclass
class HarnessConfig:
    clients: Dict[str, ClientConfig] = field(default_factory=dict)
    vector_dir: str = "vectors"
    result_dir: str = "results"
    request_timeout: float = 30.0
    verbose: bool = False
    stop_on_first_failure: bool = False

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        config = cls(
            vector_dir=os.environ.get("VECTOR_DIR", "vectors"),
            result_dir=os.environ.get("RESULT_DIR", "results"),
            request_timeout=float(os.environ.get("REQUEST_TIMEOUT", "30")),
            verbose=_env_flag("VERBOSE"),
            stop_on_first_failure=_env_flag("STOP_ON_FIRST_FAILURE"),
        )
        config.clients = parse_endpoints(
            os.environ.get("IMPL_ENDPOINTS", DEFAULT_ENDPOINTS), config.request_timeout
        )
        return config

    def get_enabled_clients(self) -> Dict[str, ClientConfig]:
        return {name: c for name, c in self.clients.items() if c.enabled}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


def parse_endpoints(raw: str, timeout: float = 30.0) -> Dict[str, ClientConfig]:
    """Parse ``name=url`` pairs; a trailing slash on the url is dropped."""
    clients: Dict[str, ClientConfig] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, url = entry.partition("=")
        name, url = name.strip(), url.strip().rstrip("/")
        if not sep or not name or not url:
            raise ValueError(f"endpoint must look like name=url, got {entry!r}")
        clients[name] = ClientConfig(name=name, endpoint=url, timeout=timeout)
    return clients
