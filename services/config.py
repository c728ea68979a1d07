"""Grader configuration.

The credential and endpoints are read once from the environment and passed
around as an explicit value, so the client and relay never look at
os.environ while handling a request.

Environment:
- XIMILAR_API_KEY      service credential (VITE_XIMILAR_API_KEY also accepted)
- GRADER_ENDPOINT      upstream grading endpoint
- GRADER_RELAY_URL     when set, the client talks to this relay instead
- GRADER_TIMEOUT_S     network timeout in seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional


DEFAULT_ENDPOINT = "https://api.ximilar.com/card-grader/v2/grade"
DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True)
class GraderConfig:
    api_key: Optional[str] = None
    endpoint: str = DEFAULT_ENDPOINT
    relay_url: Optional[str] = None
    timeout_s: float = DEFAULT_TIMEOUT_S

    @property
    def relayed(self) -> bool:
        return bool(self.relay_url)

    def with_overrides(self, **changes) -> "GraderConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def __repr__(self) -> str:
        key = "set" if self.api_key else "unset"
        return (
            f"GraderConfig(api_key=<{key}>, endpoint={self.endpoint!r}, "
            f"relay_url={self.relay_url!r}, timeout_s={self.timeout_s})"
        )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_config(environ: Optional[Mapping[str, str]] = None) -> GraderConfig:
    env = os.environ if environ is None else environ

    api_key = _clean(env.get("XIMILAR_API_KEY")) or _clean(env.get("VITE_XIMILAR_API_KEY"))

    timeout_s = DEFAULT_TIMEOUT_S
    raw_timeout = _clean(env.get("GRADER_TIMEOUT_S"))
    if raw_timeout:
        try:
            timeout_s = float(raw_timeout)
        except ValueError:
            timeout_s = DEFAULT_TIMEOUT_S
    if timeout_s <= 0:
        timeout_s = DEFAULT_TIMEOUT_S

    return GraderConfig(
        api_key=api_key,
        endpoint=_clean(env.get("GRADER_ENDPOINT")) or DEFAULT_ENDPOINT,
        relay_url=_clean(env.get("GRADER_RELAY_URL")),
        timeout_s=timeout_s,
    )
