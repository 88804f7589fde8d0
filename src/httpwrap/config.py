"""Configuration objects for the httpwrap client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from .errors import ConfigurationError

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 0.1


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client settings.

    Zero values for ``timeout``, ``max_retries`` and ``retry_delay`` are
    replaced by the defaults (30s, 3, 100ms). A negative ``max_retries``
    means no retry at all.
    """

    base_url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: float = 0
    max_retries: int = 0
    retry_delay: float = 0

    def __post_init__(self) -> None:
        if self.timeout < 0:
            raise ConfigurationError(f"timeout must not be negative, got {self.timeout}")
        if self.retry_delay < 0:
            raise ConfigurationError(f"retry_delay must not be negative, got {self.retry_delay}")

        # frozen dataclass: defaults are substituted through object.__setattr__
        object.__setattr__(self, "headers", dict(self.headers or {}))
        if self.timeout == 0:
            object.__setattr__(self, "timeout", DEFAULT_TIMEOUT)
        if self.max_retries == 0:
            object.__setattr__(self, "max_retries", DEFAULT_MAX_RETRIES)
        elif self.max_retries < 0:
            object.__setattr__(self, "max_retries", 0)
        if self.retry_delay == 0:
            object.__setattr__(self, "retry_delay", DEFAULT_RETRY_DELAY)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def with_headers(self, headers: Dict[str, str]) -> "ClientConfig":
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)

    @classmethod
    def from_env(cls, prefix: str = "HTTPWRAP_", environ: Optional[Dict[str, str]] = None) -> "ClientConfig":
        env = os.environ if environ is None else environ

        def number(name: str, cast):
            raw = env.get(prefix + name, "").strip()
            if not raw:
                return 0
            try:
                return cast(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{prefix}{name} is not a valid number: {raw!r}") from exc

        headers: Dict[str, str] = {}
        for item in env.get(prefix + "HEADERS", "").split(","):
            if not item.strip():
                continue
            name, sep, value = item.partition("=")
            if not sep or not name.strip():
                raise ConfigurationError(f"{prefix}HEADERS entry must look like Name=Value, got {item!r}")
            headers[name.strip()] = value.strip()

        return cls(
            base_url=env.get(prefix + "BASE_URL", ""),
            headers=headers,
            timeout=number("TIMEOUT", float),
            max_retries=number("MAX_RETRIES", int),
            retry_delay=number("RETRY_DELAY", float),
        )


__all__ = ["ClientConfig", "DEFAULT_TIMEOUT", "DEFAULT_MAX_RETRIES", "DEFAULT_RETRY_DELAY"]
