"""Pipeline configuration models & YAML loading.

Only structural parsing and validation live here; the components receive
plain values from these models and never read configuration themselves.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shipyard_release.hosting.github import DEFAULT_API_URL, DEFAULT_UPLOAD_URL
from shipyard_release.publish.models import DEFAULT_CONTENT_TYPE

from .errors import ConfigError


class BuildProfile(str, Enum):
    DEBUG = "debug"
    RELEASE = "release"


class ProvisionSettings(BaseModel):
    packages: List[str] = Field(default_factory=list)
    manager: str = "apt"
    use_sudo: bool = True

    model_config = ConfigDict(extra="forbid")


class BuildSettings(BaseModel):
    profile: BuildProfile = BuildProfile.RELEASE
    command: List[str] = Field(default_factory=lambda: ["cargo", "build"])
    profile_args: Dict[BuildProfile, List[str]] = Field(
        default_factory=lambda: {BuildProfile.DEBUG: [], BuildProfile.RELEASE: ["--release"]}
    )
    artifacts: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    working_dir: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ReleaseSettings(BaseModel):
    repo: Optional[str] = Field(default=None, description="Hosting repository as owner/name.")
    tag: str = "dev"
    name: Optional[str] = None
    body: Optional[str] = None
    commit: Optional[str] = None
    prerelease: bool = False
    allow_update: bool = False
    draft: bool = False
    replace_artifacts: bool = True
    remove_artifacts: bool = False
    content_type: str = DEFAULT_CONTENT_TYPE
    token_env: str = "GITHUB_TOKEN"
    api_url: str = DEFAULT_API_URL
    upload_url: str = DEFAULT_UPLOAD_URL

    model_config = ConfigDict(extra="forbid")


class PipelineConfig(BaseModel):
    provision: ProvisionSettings = Field(default_factory=ProvisionSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    release: ReleaseSettings = Field(default_factory=ReleaseSettings)

    model_config = ConfigDict(extra="forbid")

    def with_overrides(
        self,
        *,
        tag: Optional[str] = None,
        prerelease: Optional[bool] = None,
        allow_update: Optional[bool] = None,
        profile: Optional[str] = None,
        artifacts: Optional[List[str]] = None,
        packages: Optional[List[str]] = None,
        repo: Optional[str] = None,
        commit: Optional[str] = None,
    ) -> "PipelineConfig":
        """Return a copy with every non-``None`` override applied."""
        release_updates: Dict[str, Any] = {
            key: value
            for key, value in {
                "tag": tag,
                "prerelease": prerelease,
                "allow_update": allow_update,
                "repo": repo,
                "commit": commit,
            }.items()
            if value is not None
        }
        build_updates: Dict[str, Any] = {}
        if profile is not None:
            try:
                build_updates["profile"] = BuildProfile(profile)
            except ValueError as exc:
                raise ConfigError(f"Unknown build profile '{profile}'") from exc
        if artifacts:
            build_updates["artifacts"] = list(artifacts)
        provision_updates: Dict[str, Any] = {}
        if packages:
            provision_updates["packages"] = list(packages)

        return self.model_copy(
            update={
                "release": self.release.model_copy(update=release_updates),
                "build": self.build.model_copy(update=build_updates),
                "provision": self.provision.model_copy(update=provision_updates),
            }
        )


def load_config(path: Path) -> PipelineConfig:
    """Load pipeline YAML from path.

    Raises ConfigError on unreadable files, YAML syntax errors, and schema
    violations.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read pipeline config: {exc}") from exc
    return load_config_from_string(text, source=str(path))


def load_config_from_string(text: str, *, source: str = "<string>") -> PipelineConfig:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error in {source}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Pipeline config root must be a mapping ({source})")
    try:
        return PipelineConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid pipeline config {source}: {exc}") from exc


__all__ = [
    "BuildProfile",
    "BuildSettings",
    "PipelineConfig",
    "ProvisionSettings",
    "ReleaseSettings",
    "load_config",
    "load_config_from_string",
]
