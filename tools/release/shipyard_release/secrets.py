"""Hosting token lookup.

A token is found by name: the process environment is checked first, then each
``.env`` file registered with :func:`use_dotenv`. The CLI resolves once and
hands the value to the hosting client; nothing else reads the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    label: str

    def lookup(self, name: str) -> Optional[str]:
        ...


@dataclass(frozen=True)
class SecretAttempt:
    source: str
    found: bool


@dataclass(frozen=True)
class SecretResolutionInfo:
    name: str
    value: Optional[str]
    source: Optional[str]
    attempts: List[SecretAttempt]

    def summary(self) -> str:
        if not self.attempts:
            return "none"
        return ", ".join(f"{attempt.source} ({'found' if attempt.found else 'missing'})" for attempt in self.attempts)


class EnvResolver:
    label = "env"

    def lookup(self, name: str) -> Optional[str]:
        return os.environ.get(name) or None


class DotEnvResolver:
    """Reads a ``.env`` file once, on first lookup, without exporting it."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.label = f"dotenv@{self.path}"
        self._values: Optional[Dict[str, str]] = None

    def lookup(self, name: str) -> Optional[str]:
        if self._values is None:
            self._values = self._load()
        return self._values.get(name) or None

    def _load(self) -> Dict[str, str]:
        if not self.path.is_file():
            return {}
        values: Dict[str, str] = {}
        for key, value in dotenv_values(self.path).items():
            if value is None:
                logger.warning("Ignoring %s in %s: missing '='", key, self.path)
                continue
            values[key] = value
        return values


_sources: List[TokenSource] = [EnvResolver()]


def register_resolver(source: TokenSource) -> None:
    """Append ``source`` to the chain unless one with the same label is present."""
    if any(existing.label == source.label for existing in _sources):
        return
    _sources.append(source)


def use_dotenv(path: str | Path) -> None:
    register_resolver(DotEnvResolver(Path(path).resolve()))


def resolve_secret_info(name: str) -> SecretResolutionInfo:
    attempts: List[SecretAttempt] = []
    for source in _sources:
        value = source.lookup(name)
        attempts.append(SecretAttempt(source=source.label, found=value is not None))
        if value is not None:
            return SecretResolutionInfo(name=name, value=value, source=source.label, attempts=attempts)
    return SecretResolutionInfo(name=name, value=None, source=None, attempts=attempts)


def resolve_secret(name: str) -> Optional[str]:
    return resolve_secret_info(name).value


__all__ = [
    "DotEnvResolver",
    "EnvResolver",
    "SecretAttempt",
    "SecretResolutionInfo",
    "TokenSource",
    "register_resolver",
    "resolve_secret",
    "resolve_secret_info",
    "use_dotenv",
]
