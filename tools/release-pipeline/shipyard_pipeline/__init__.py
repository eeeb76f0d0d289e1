"""Build-and-publish pipeline orchestration."""

from .build import Builder
from .config import (
    BuildProfile,
    BuildSettings,
    PipelineConfig,
    ProvisionSettings,
    ReleaseSettings,
    load_config,
    load_config_from_string,
)
from .errors import BuildError, BuildErrorKind, ConfigError, PipelineError, ProvisionError
from .pipelines import (
    STEP_BUILD,
    STEP_PROVISION,
    STEP_PUBLISH,
    build_release_pipeline,
    exit_code_for,
    github_host_factory,
    run_release_pipeline,
)
from .provision import EnvironmentProvisioner, ProvisionResult, provision
from .runner import PipelineResult, Step, run

__all__ = [
    "Builder",
    "BuildError",
    "BuildErrorKind",
    "BuildProfile",
    "BuildSettings",
    "ConfigError",
    "EnvironmentProvisioner",
    "PipelineConfig",
    "PipelineError",
    "PipelineResult",
    "ProvisionError",
    "ProvisionResult",
    "ProvisionSettings",
    "ReleaseSettings",
    "STEP_BUILD",
    "STEP_PROVISION",
    "STEP_PUBLISH",
    "Step",
    "build_release_pipeline",
    "exit_code_for",
    "github_host_factory",
    "load_config",
    "load_config_from_string",
    "provision",
    "run",
    "run_release_pipeline",
]
