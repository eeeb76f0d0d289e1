from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from shipyard_release.hosting import HostAuthError, HostError, InMemoryReleaseHost, TransientHostError
from shipyard_release.publish import (
    BuildArtifact,
    PublishError,
    PublishErrorKind,
    ReleasePublisher,
    ReleaseSpec,
)


def _artifact(tmp_path: Path, name: str, content: bytes = b"bin") -> BuildArtifact:
    path = tmp_path / name
    path.write_bytes(content)
    return BuildArtifact(local_path=path)


def _publisher(host: InMemoryReleaseHost, **kwargs) -> ReleasePublisher:
    delays: List[float] = []
    publisher = ReleasePublisher(host, sleep=delays.append, **kwargs)
    publisher.delays = delays  # type: ignore[attr-defined]
    return publisher


def test_creates_missing_release_and_uploads(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    spec = ReleaseSpec(tag="dev-linux", prerelease=True, allow_update=True, artifacts=(_artifact(tmp_path, "app"),))

    result = _publisher(host).publish(spec)

    assert result.status == "published"
    assert result.action == "create"
    release = host.releases["dev-linux"]
    assert release.prerelease is True
    assert [asset.name for asset in release.assets] == ["app"]
    assert [upload.name for upload in result.uploaded] == ["app"]
    assert result.release_id == release.id


def test_publish_twice_keeps_single_release_with_latest_assets(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    artifact = _artifact(tmp_path, "app", b"first")
    spec = ReleaseSpec(tag="dev-linux", prerelease=True, allow_update=True, artifacts=(artifact,))

    first = _publisher(host).publish(spec)
    artifact.local_path.write_bytes(b"second")
    second = _publisher(host).publish(spec)

    assert first.status == second.status == "published"
    assert second.action == "update"
    assert list(host.releases) == ["dev-linux"]
    assert host.operations("create_release") == ["dev-linux"]
    release = host.releases["dev-linux"]
    assert first.release_id == second.release_id == release.id
    assert [asset.name for asset in release.assets] == ["app"]
    assert host.contents[release.assets[0].id] == b"second"
    assert second.uploaded[0].replaced is True


def test_update_sets_prerelease_flag(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.create_release(tag="nightly", prerelease=False)
    spec = ReleaseSpec(tag="nightly", prerelease=True, allow_update=True, artifacts=(_artifact(tmp_path, "app"),))

    _publisher(host).publish(spec)

    assert host.releases["nightly"].prerelease is True
    assert host.operations("update_release") == [host.releases["nightly"].id]


def test_existing_tag_without_update_conflicts_and_uploads_nothing(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.create_release(tag="dev-linux", prerelease=True)
    spec = ReleaseSpec(tag="dev-linux", prerelease=True, allow_update=False, artifacts=(_artifact(tmp_path, "app"),))

    with pytest.raises(PublishError) as excinfo:
        _publisher(host).publish(spec)

    assert excinfo.value.kind is PublishErrorKind.TAG_CONFLICT
    assert excinfo.value.tag == "dev-linux"
    assert host.operations("upload_asset") == []
    assert host.operations("update_release") == []


def test_uploads_follow_declared_order(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    artifacts = tuple(_artifact(tmp_path, name) for name in ("a", "b", "c"))
    spec = ReleaseSpec(tag="v1", artifacts=artifacts)

    _publisher(host).publish(spec)

    assert host.operations("upload_asset") == ["a", "b", "c"]


def test_transient_failures_are_retried(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.fail_next("get_release_by_tag", TransientHostError("timeout"))
    host.fail_next("upload_asset", TransientHostError("502"), TransientHostError("502"))
    spec = ReleaseSpec(tag="v1", artifacts=(_artifact(tmp_path, "app"),))
    publisher = _publisher(host, backoff=0.25)

    result = publisher.publish(spec)

    assert result.status == "published"
    assert host.operations("upload_asset") == ["app", "app", "app"]
    assert publisher.delays == [0.25, 0.25, 0.5]  # type: ignore[attr-defined]


def test_exhausted_retries_surface_network_error(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.fail_next("get_release_by_tag", *(TransientHostError("down") for _ in range(3)))
    spec = ReleaseSpec(tag="v1", artifacts=(_artifact(tmp_path, "app"),))

    with pytest.raises(PublishError) as excinfo:
        _publisher(host).publish(spec)

    assert excinfo.value.kind is PublishErrorKind.NETWORK_ERROR
    assert isinstance(excinfo.value.cause, TransientHostError)
    assert len(host.operations("get_release_by_tag")) == 3
    assert host.operations("create_release") == []


def test_unauthorized_fails_without_retry(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.fail_next("get_release_by_tag", HostAuthError("Bad credentials", status_code=401))
    spec = ReleaseSpec(tag="v1", artifacts=(_artifact(tmp_path, "app"),))
    publisher = _publisher(host)

    with pytest.raises(PublishError) as excinfo:
        publisher.publish(spec)

    assert excinfo.value.kind is PublishErrorKind.UNAUTHORIZED
    assert len(host.operations("get_release_by_tag")) == 1
    assert publisher.delays == []  # type: ignore[attr-defined]


def test_other_host_errors_map_to_api_error(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.fail_next("create_release", HostError("Validation Failed", status_code=422))
    spec = ReleaseSpec(tag="v1", artifacts=(_artifact(tmp_path, "app"),))

    with pytest.raises(PublishError) as excinfo:
        _publisher(host).publish(spec)

    assert excinfo.value.kind is PublishErrorKind.API_ERROR


def test_missing_required_artifact_fails_before_network(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    spec = ReleaseSpec(tag="v1", artifacts=(BuildArtifact(local_path=tmp_path / "nope"),))

    with pytest.raises(PublishError) as excinfo:
        _publisher(host).publish(spec)

    assert excinfo.value.kind is PublishErrorKind.ARTIFACT_MISSING
    assert excinfo.value.path == str(tmp_path / "nope")
    assert host.calls == []


def test_missing_optional_artifact_is_skipped(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    spec = ReleaseSpec(
        tag="v1",
        artifacts=(_artifact(tmp_path, "app"), BuildArtifact(local_path=tmp_path / "docs.tar.gz", must_exist=False)),
    )

    result = _publisher(host).publish(spec)

    assert result.skipped == ["docs.tar.gz"]
    assert host.operations("upload_asset") == ["app"]
    assert result.warnings


def test_existing_asset_without_replace_is_a_conflict(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    artifact = _artifact(tmp_path, "app")
    _publisher(host).publish(ReleaseSpec(tag="v1", artifacts=(artifact,)))
    spec = ReleaseSpec(tag="v1", allow_update=True, replace_artifacts=False, artifacts=(artifact,))

    with pytest.raises(PublishError) as excinfo:
        _publisher(host).publish(spec)

    assert excinfo.value.kind is PublishErrorKind.ASSET_CONFLICT
    assert host.operations("delete_asset") == []


def test_remove_artifacts_drops_stale_assets(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    _publisher(host).publish(ReleaseSpec(tag="v1", artifacts=(_artifact(tmp_path, "old"), _artifact(tmp_path, "app"))))
    spec = ReleaseSpec(tag="v1", allow_update=True, remove_artifacts=True, artifacts=(_artifact(tmp_path, "app"),))

    result = _publisher(host).publish(spec)

    assert result.removed == ["old"]
    assert [asset.name for asset in host.releases["v1"].assets] == ["app"]


def test_source_drift_is_reported_but_not_blocking(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.create_release(tag="dev-linux", prerelease=True, commit="aaa111")
    spec = ReleaseSpec(
        tag="dev-linux",
        prerelease=True,
        allow_update=True,
        commit="bbb222",
        artifacts=(_artifact(tmp_path, "app"),),
    )

    result = _publisher(host).publish(spec)

    assert result.status == "published"
    assert any("aaa111" in warning and "bbb222" in warning for warning in result.warnings)


def test_dry_run_plans_without_mutation(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    spec = ReleaseSpec(tag="dev-linux", prerelease=True, allow_update=True, artifacts=(_artifact(tmp_path, "app"),))

    result = _publisher(host, dry_run=True).publish(spec)

    assert result.status == "dry_run"
    assert result.action == "create"
    assert host.operations() == ["get_release_by_tag"]
    assert host.releases == {}


def test_release_spec_is_immutable(tmp_path: Path) -> None:
    spec = ReleaseSpec(tag="v1", artifacts=[_artifact(tmp_path, "app")])  # type: ignore[arg-type]

    assert isinstance(spec.artifacts, tuple)
    with pytest.raises(AttributeError):
        spec.tag = "v2"  # type: ignore[misc]
    with pytest.raises(ValueError):
        ReleaseSpec(tag="")


def test_artifacts_sharing_a_basename_fail_before_network(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    host = InMemoryReleaseHost()
    spec = ReleaseSpec(tag="v1", artifacts=(_artifact(tmp_path / "a", "app"), _artifact(tmp_path / "b", "app")))

    with pytest.raises(PublishError) as excinfo:
        _publisher(host).publish(spec)

    assert excinfo.value.kind is PublishErrorKind.ASSET_CONFLICT
    assert "app" in str(excinfo.value)
    assert host.calls == []


def test_upload_retry_clears_asset_left_by_failed_attempt(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.fail_after("upload_asset", TransientHostError("502 Bad Gateway", status_code=502))
    spec = ReleaseSpec(tag="dev-linux", prerelease=True, allow_update=True, artifacts=(_artifact(tmp_path, "app", b"v2"),))

    result = _publisher(host).publish(spec)

    assert result.status == "published"
    assert host.operations("upload_asset") == ["app", "app"]
    assert len(host.operations("delete_asset")) == 1
    release = host.releases["dev-linux"]
    assert [asset.name for asset in release.assets] == ["app"]
    assert result.uploaded[0].asset_id == release.assets[0].id
    assert host.contents[release.assets[0].id] == b"v2"
    assert any("partial upload" in line for line in result.logs)


def test_upload_retry_without_leftover_just_posts_again(tmp_path: Path) -> None:
    host = InMemoryReleaseHost()
    host.fail_next("upload_asset", TransientHostError("connection reset"))
    spec = ReleaseSpec(tag="v1", artifacts=(_artifact(tmp_path, "app"),))

    _publisher(host).publish(spec)

    assert host.operations("delete_asset") == []
    assert host.operations("get_release_by_tag") == ["v1", "v1"]
