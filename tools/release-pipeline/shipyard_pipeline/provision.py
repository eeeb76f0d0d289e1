"""System package provisioning ahead of a build."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import COMMAND_NOT_FOUND, ConfigError, ProvisionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageManager:
    name: str
    install: Sequence[str]
    query: Sequence[str]
    installed_marker: Optional[str] = None

    def install_command(self, package: str, *, use_sudo: bool) -> List[str]:
        command = [*self.install, package]
        return ["sudo", *command] if use_sudo else command

    def query_command(self, package: str) -> List[str]:
        return [*self.query, package]


PACKAGE_MANAGERS: Dict[str, PackageManager] = {
    "apt": PackageManager(
        name="apt",
        install=("apt-get", "-y", "install"),
        query=("dpkg-query", "-W", "-f=${Status}"),
        installed_marker="install ok installed",
    ),
    "dnf": PackageManager(
        name="dnf",
        install=("dnf", "-y", "install"),
        query=("rpm", "-q"),
    ),
}


def get_package_manager(name: str) -> PackageManager:
    try:
        return PACKAGE_MANAGERS[name]
    except KeyError as exc:
        available = ", ".join(sorted(PACKAGE_MANAGERS))
        raise ConfigError(f"Unknown package manager '{name}'. Available managers: {available}.") from exc


@dataclass(slots=True)
class ProvisionResult:
    installed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {"installed": self.installed, "skipped": self.skipped, "logs": self.logs}


class EnvironmentProvisioner:
    """Install packages one at a time, stopping at the first failure."""

    def __init__(
        self,
        manager: str | PackageManager = "apt",
        *,
        use_sudo: bool = True,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.manager = manager if isinstance(manager, PackageManager) else get_package_manager(manager)
        self.use_sudo = use_sudo
        self.env = dict(env) if env is not None else None

    def provision(self, packages: Sequence[str]) -> ProvisionResult:
        result = ProvisionResult()
        for package in packages:
            if self.is_installed(package):
                logger.info("Package %s already installed; skipping", package)
                result.skipped.append(package)
                result.logs.append(f"{package}: already installed")
                continue

            command = self.manager.install_command(package, use_sudo=self.use_sudo)
            logger.info("Installing %s: %s", package, " ".join(command))
            try:
                proc = subprocess.run(command, capture_output=True, text=True, check=False, env=self.env)
            except OSError as exc:
                logger.error("Cannot run installer for %s: %s", package, exc)
                raise ProvisionError(package, COMMAND_NOT_FOUND, str(exc)) from exc
            if proc.returncode != 0:
                logger.error("Installing %s failed (exit %s)", package, proc.returncode)
                raise ProvisionError(package, proc.returncode, proc.stderr or "")
            result.installed.append(package)
            result.logs.append(f"{package}: installed")
        return result

    def is_installed(self, package: str) -> bool:
        try:
            proc = subprocess.run(
                self.manager.query_command(package),
                capture_output=True,
                text=True,
                check=False,
                env=self.env,
            )
        except OSError:
            logger.debug("Query tool for %s unavailable; assuming %s is not installed", self.manager.name, package)
            return False
        if proc.returncode != 0:
            return False
        if self.manager.installed_marker is None:
            return True
        return self.manager.installed_marker in (proc.stdout or "")


def provision(packages: Sequence[str], *, manager: str = "apt", use_sudo: bool = True) -> ProvisionResult:
    return EnvironmentProvisioner(manager, use_sudo=use_sudo).provision(packages)


__all__ = [
    "EnvironmentProvisioner",
    "PACKAGE_MANAGERS",
    "PackageManager",
    "ProvisionResult",
    "get_package_manager",
    "provision",
]
