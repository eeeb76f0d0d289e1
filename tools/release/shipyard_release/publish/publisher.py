"""High-level publish workflow: lookup, create or update, upload."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, TypeVar

from ..hosting.base import HostAuthError, HostError, ReleaseHost, TransientHostError
from ..retry import DEFAULT_BACKOFF_SECONDS, DEFAULT_MAX_ATTEMPTS, call_with_retry
from ..schemas.release import Release, ReleaseAsset
from .errors import PublishError, PublishErrorKind
from .models import BuildArtifact, PublishResult, ReleaseSpec, UploadResult
from .plan import PublishAction, ReleaseLookup, plan_release

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReleasePublisher:
    def __init__(
        self,
        host: ReleaseHost,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        dry_run: bool = False,
    ) -> None:
        self.host = host
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.sleep = sleep
        self.dry_run = dry_run

    def publish(self, spec: ReleaseSpec) -> PublishResult:
        logs: List[str] = []
        warnings: List[str] = []
        artifacts, skipped = self._check_artifacts(spec, warnings)

        lookup = ReleaseLookup.from_release(
            self._call(spec, "lookup release", lambda: self.host.get_release_by_tag(spec.tag))
        )
        action = plan_release(lookup, allow_update=spec.allow_update)
        logs.append(f"Lookup for tag '{spec.tag}': {lookup.outcome.value}; action: {action.value}.")

        if action is PublishAction.CONFLICT:
            raise PublishError(
                PublishErrorKind.TAG_CONFLICT,
                f"Release '{spec.tag}' already exists and updates are not allowed.",
                tag=spec.tag,
            )

        if action is PublishAction.UPDATE:
            assert lookup.release is not None
            self._warn_on_source_drift(spec, lookup.release, warnings)

        if self.dry_run:
            logs.append("Dry run enabled; release and assets left untouched.")
            existing = lookup.release
            return PublishResult(
                status="dry_run",
                action=action.value,
                tag=spec.tag,
                release_id=existing.id if existing else None,
                url=existing.html_url if existing else None,
                skipped=skipped + [artifact.name for artifact in artifacts],
                warnings=warnings,
                logs=logs,
            )

        if action is PublishAction.CREATE:
            release = self._call(
                spec,
                "create release",
                lambda: self.host.create_release(
                    tag=spec.tag,
                    prerelease=spec.prerelease,
                    name=spec.name,
                    body=spec.body,
                    commit=spec.commit,
                    draft=spec.draft,
                ),
            )
            logs.append(f"Created release {release.id} for tag '{spec.tag}'.")
        else:
            existing = lookup.release
            assert existing is not None
            release = self._call(
                spec,
                "update release",
                lambda: self.host.update_release(
                    existing.id,
                    prerelease=spec.prerelease,
                    name=spec.name,
                    body=spec.body,
                ),
            )
            logs.append(f"Updated release {release.id} for tag '{spec.tag}' (prerelease={spec.prerelease}).")

        removed = self._remove_stale_assets(spec, release, artifacts, logs)
        uploaded = self._upload_artifacts(spec, release, artifacts, logs)

        return PublishResult(
            status="published",
            action=action.value,
            tag=spec.tag,
            release_id=release.id,
            url=release.html_url,
            uploaded=uploaded,
            removed=removed,
            skipped=skipped,
            warnings=warnings,
            logs=logs,
        )

    def _check_artifacts(self, spec: ReleaseSpec, warnings: List[str]) -> tuple[List[BuildArtifact], List[str]]:
        present: List[BuildArtifact] = []
        skipped: List[str] = []
        seen: Dict[str, BuildArtifact] = {}
        for artifact in spec.artifacts:
            # Asset names are basenames, so two paths may collide on the release.
            clash = seen.setdefault(artifact.name, artifact)
            if clash is not artifact:
                raise PublishError(
                    PublishErrorKind.ASSET_CONFLICT,
                    f"Artifacts {clash.local_path} and {artifact.local_path} would both upload as '{artifact.name}'.",
                    tag=spec.tag,
                    path=str(artifact.local_path),
                )
            if artifact.local_path.is_file():
                present.append(artifact)
                continue
            if artifact.must_exist:
                raise PublishError(
                    PublishErrorKind.ARTIFACT_MISSING,
                    f"Artifact not found: {artifact.local_path}",
                    tag=spec.tag,
                    path=str(artifact.local_path),
                )
            message = f"Optional artifact not found, skipping: {artifact.local_path}"
            logger.warning(message)
            warnings.append(message)
            skipped.append(artifact.name)
        return present, skipped

    def _warn_on_source_drift(self, spec: ReleaseSpec, release: Release, warnings: List[str]) -> None:
        if not spec.commit or not release.target_commitish:
            return
        if spec.commit == release.target_commitish:
            return
        message = (
            f"Release '{spec.tag}' targets '{release.target_commitish}' but this run was built from "
            f"'{spec.commit}'; its assets will be replaced."
        )
        logger.warning(message)
        warnings.append(message)

    def _remove_stale_assets(
        self,
        spec: ReleaseSpec,
        release: Release,
        artifacts: List[BuildArtifact],
        logs: List[str],
    ) -> List[str]:
        if not spec.remove_artifacts:
            return []
        keep = {artifact.name for artifact in artifacts}
        removed: List[str] = []
        for asset in release.assets:
            if asset.name in keep:
                continue
            self._call(spec, f"delete asset {asset.name}", lambda asset_id=asset.id: self.host.delete_asset(asset_id))
            logs.append(f"Removed stale asset {asset.name}.")
            removed.append(asset.name)
        return removed

    def _upload_artifacts(
        self,
        spec: ReleaseSpec,
        release: Release,
        artifacts: List[BuildArtifact],
        logs: List[str],
    ) -> List[UploadResult]:
        uploaded: List[UploadResult] = []
        for artifact in artifacts:
            replaced = False
            existing = release.asset_named(artifact.name)
            if existing is not None:
                if not spec.replace_artifacts:
                    raise PublishError(
                        PublishErrorKind.ASSET_CONFLICT,
                        f"Asset '{artifact.name}' already exists on release '{spec.tag}'.",
                        tag=spec.tag,
                        path=str(artifact.local_path),
                    )
                self._call(
                    spec,
                    f"delete asset {artifact.name}",
                    lambda asset_id=existing.id: self.host.delete_asset(asset_id),
                )
                replaced = True

            asset = self._call(spec, f"upload {artifact.name}", self._upload_attempts(spec, release, artifact, logs))
            logs.append(f"{'Replaced' if replaced else 'Uploaded'} asset {artifact.name}.")
            uploaded.append(
                UploadResult(
                    name=artifact.name,
                    local_path=str(artifact.local_path),
                    asset_id=asset.id,
                    replaced=replaced,
                    url=asset.browser_download_url,
                )
            )
        return uploaded

    def _upload_attempts(
        self,
        spec: ReleaseSpec,
        release: Release,
        artifact: BuildArtifact,
        logs: List[str],
    ) -> Callable[[], ReleaseAsset]:
        """Return the retryable upload for ``artifact``.

        A failed upload may still have registered the asset on the host, so
        every attempt after the first re-reads the release and deletes a
        leftover asset of the same name before posting again.
        """
        attempts = 0

        def upload() -> ReleaseAsset:
            nonlocal attempts
            attempts += 1
            if attempts > 1:
                leftover = self._current_asset(spec, artifact.name)
                if leftover is not None:
                    self.host.delete_asset(leftover.id)
                    logs.append(f"Deleted partial upload of {artifact.name} before retrying.")
            return self.host.upload_asset(
                release.id,
                artifact.local_path,
                name=artifact.name,
                content_type=spec.content_type,
            )

        return upload

    def _current_asset(self, spec: ReleaseSpec, name: str) -> Optional[ReleaseAsset]:
        current = self.host.get_release_by_tag(spec.tag)
        return current.asset_named(name) if current is not None else None

    def _call(self, spec: ReleaseSpec, description: str, func: Callable[[], T]) -> T:
        try:
            return call_with_retry(
                func,
                retry_on=(TransientHostError,),
                attempts=self.max_attempts,
                backoff=self.backoff,
                sleep=self.sleep,
                description=description,
            )
        except TransientHostError as exc:
            raise PublishError(
                PublishErrorKind.NETWORK_ERROR,
                f"{description} failed after {self.max_attempts} attempts: {exc}",
                tag=spec.tag,
                cause=exc,
            ) from exc
        except HostAuthError as exc:
            raise PublishError(
                PublishErrorKind.UNAUTHORIZED,
                f"{description} was not authorized: {exc}",
                tag=spec.tag,
                cause=exc,
            ) from exc
        except HostError as exc:
            raise PublishError(
                PublishErrorKind.API_ERROR,
                f"{description} failed: {exc}",
                tag=spec.tag,
                cause=exc,
            ) from exc


def publish_release(host: ReleaseHost, spec: ReleaseSpec, *, dry_run: bool = False, **options: object) -> PublishResult:
    return ReleasePublisher(host, dry_run=dry_run, **options).publish(spec)  # type: ignore[arg-type]


__all__ = ["ReleasePublisher", "publish_release"]
