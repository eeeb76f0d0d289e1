"""Assembly of the provision, build and publish steps from configuration."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from shipyard_release.hosting import GitHubReleaseHost, ReleaseHost
from shipyard_release.publish import BuildArtifact, ReleasePublisher, ReleaseSpec

from .build import Builder
from .config import PipelineConfig, ReleaseSettings
from .errors import ConfigError
from .provision import EnvironmentProvisioner
from .runner import PipelineResult, Step, run

logger = logging.getLogger(__name__)

STEP_PROVISION = "Provision"
STEP_BUILD = "Build"
STEP_PUBLISH = "Publish"
STEP_ORDER = (STEP_PROVISION, STEP_BUILD, STEP_PUBLISH)

STEP_EXIT_CODES: Dict[str, int] = {
    STEP_PROVISION: 3,
    STEP_BUILD: 4,
    STEP_PUBLISH: 5,
}

HostFactory = Callable[[], ReleaseHost]


def github_host_factory(settings: ReleaseSettings, token: Optional[str]) -> HostFactory:
    def factory() -> ReleaseHost:
        if not settings.repo:
            raise ConfigError("release.repo must be set (owner/name) to publish.")
        return GitHubReleaseHost(
            settings.repo,
            token,
            api_url=settings.api_url,
            upload_url=settings.upload_url,
        )

    return factory


def release_spec_from_config(settings: ReleaseSettings, artifacts: Sequence[BuildArtifact]) -> ReleaseSpec:
    return ReleaseSpec(
        tag=settings.tag,
        prerelease=settings.prerelease,
        allow_update=settings.allow_update,
        artifacts=tuple(artifacts),
        name=settings.name,
        body=settings.body,
        commit=settings.commit,
        draft=settings.draft,
        replace_artifacts=settings.replace_artifacts,
        remove_artifacts=settings.remove_artifacts,
        content_type=settings.content_type,
    )


def build_release_pipeline(
    config: PipelineConfig,
    *,
    workspace_root: Path,
    host_factory: HostFactory,
    dry_run: bool = False,
    only: Optional[Sequence[str]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Step]:
    """Return the ordered steps for ``config``.

    ``only`` restricts the run to a subset of step names while keeping their
    canonical order. The hosting client is created inside the publish step.
    """
    workspace = Path(workspace_root).resolve()
    selected = _select_steps(only)

    def provision_step(outputs: Mapping[str, object]) -> object:
        settings = config.provision
        provisioner = EnvironmentProvisioner(settings.manager, use_sudo=settings.use_sudo)
        return provisioner.provision(settings.packages)

    def build_step(outputs: Mapping[str, object]) -> object:
        settings = config.build
        builder = Builder(
            workspace,
            command=settings.command,
            profile_args=settings.profile_args,
            env=settings.env,
            working_dir=settings.working_dir,
        )
        return builder.build(settings.profile, settings.artifacts)

    def publish_step(outputs: Mapping[str, object]) -> object:
        built = outputs.get(STEP_BUILD)
        if isinstance(built, list):
            artifacts: List[BuildArtifact] = built
        else:
            artifacts = _configured_artifacts(config, workspace)
        spec = release_spec_from_config(config.release, artifacts)
        publisher = ReleasePublisher(host_factory(), dry_run=dry_run, sleep=sleep)
        return publisher.publish(spec)

    actions = {
        STEP_PROVISION: provision_step,
        STEP_BUILD: build_step,
        STEP_PUBLISH: publish_step,
    }
    return [Step(name=name, action=actions[name]) for name in selected]


def run_release_pipeline(
    config: PipelineConfig,
    *,
    workspace_root: Path,
    host_factory: HostFactory,
    dry_run: bool = False,
    only: Optional[Sequence[str]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PipelineResult:
    steps = build_release_pipeline(
        config,
        workspace_root=workspace_root,
        host_factory=host_factory,
        dry_run=dry_run,
        only=only,
        sleep=sleep,
    )
    result = run(steps)
    if result.succeeded:
        logger.info("Pipeline completed: %s", ", ".join(result.completed))
    else:
        logger.error("Pipeline failed at step %s", result.failed_step)
    return result


def exit_code_for(result: PipelineResult) -> int:
    if result.succeeded:
        return 0
    return STEP_EXIT_CODES.get(result.failed_step or "", 1)


def _select_steps(only: Optional[Sequence[str]]) -> List[str]:
    if not only:
        return list(STEP_ORDER)
    unknown = [name for name in only if name not in STEP_ORDER]
    if unknown:
        raise ConfigError(f"Unknown step(s): {', '.join(unknown)}. Known steps: {', '.join(STEP_ORDER)}.")
    return [name for name in STEP_ORDER if name in only]


def _configured_artifacts(config: PipelineConfig, workspace: Path) -> List[BuildArtifact]:
    artifacts: List[BuildArtifact] = []
    for entry in config.build.artifacts:
        path = Path(entry)
        artifacts.append(BuildArtifact(local_path=path if path.is_absolute() else workspace / path))
    return artifacts


__all__ = [
    "HostFactory",
    "STEP_BUILD",
    "STEP_EXIT_CODES",
    "STEP_ORDER",
    "STEP_PROVISION",
    "STEP_PUBLISH",
    "build_release_pipeline",
    "exit_code_for",
    "github_host_factory",
    "release_spec_from_config",
    "run_release_pipeline",
]
