"""Publish workflow helpers for shipyard-release."""

from .errors import PublishError, PublishErrorKind
from .models import BuildArtifact, PublishResult, ReleaseSpec, UploadResult
from .plan import LookupOutcome, PublishAction, ReleaseLookup, plan_release
from .publisher import ReleasePublisher, publish_release

__all__ = [
    "BuildArtifact",
    "LookupOutcome",
    "PublishAction",
    "PublishError",
    "PublishErrorKind",
    "PublishResult",
    "ReleaseLookup",
    "ReleasePublisher",
    "ReleaseSpec",
    "UploadResult",
    "plan_release",
    "publish_release",
]
