"""Release hosting helpers for shipyard pipelines."""

__version__ = "0.1.0"
from .hosting import GitHubReleaseHost, HostAuthError, HostError, ReleaseHost, TransientHostError
from .publish import (
    BuildArtifact,
    PublishAction,
    PublishError,
    PublishErrorKind,
    PublishResult,
    ReleasePublisher,
    ReleaseSpec,
    UploadResult,
    publish_release,
)
from .schemas.release import Release, ReleaseAsset
from .secrets import (
    SecretAttempt,
    SecretResolutionInfo,
    register_resolver,
    resolve_secret,
    resolve_secret_info,
    use_dotenv,
)
from .workflows import (
    WorkflowDispatchResult,
    WorkflowSpec,
    WorkflowTriggerError,
    trigger_workflow,
)

__all__ = [
    "__version__",
    "BuildArtifact",
    "GitHubReleaseHost",
    "HostAuthError",
    "HostError",
    "PublishAction",
    "PublishError",
    "PublishErrorKind",
    "PublishResult",
    "Release",
    "ReleaseAsset",
    "ReleaseHost",
    "ReleasePublisher",
    "ReleaseSpec",
    "TransientHostError",
    "UploadResult",
    "publish_release",
    "SecretAttempt",
    "SecretResolutionInfo",
    "register_resolver",
    "resolve_secret",
    "resolve_secret_info",
    "use_dotenv",
    "WorkflowDispatchResult",
    "WorkflowSpec",
    "WorkflowTriggerError",
    "trigger_workflow",
]
