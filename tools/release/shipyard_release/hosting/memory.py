"""In-process release host for local dry runs and tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..schemas.release import Release, ReleaseAsset


class InMemoryReleaseHost:
    """Keeps releases in a dict and records every call as ``(operation, detail)``.

    Failures can be queued per operation with :meth:`fail_next` (raised before
    the operation runs) or :meth:`fail_after` (raised after its effect is
    stored, as when a response is lost). Each queued exception fires once.
    """

    def __init__(self, repo: str = "local/example") -> None:
        self.repo = repo
        self.releases: Dict[str, Release] = {}
        self.contents: Dict[int, bytes] = {}
        self.calls: List[Tuple[str, object]] = []
        self._failures: Dict[str, List[Exception]] = {}
        self._late_failures: Dict[str, List[Exception]] = {}
        self._next_id = 1

    def fail_next(self, operation: str, *errors: Exception) -> None:
        self._failures.setdefault(operation, []).extend(errors)

    def fail_after(self, operation: str, *errors: Exception) -> None:
        self._late_failures.setdefault(operation, []).extend(errors)

    def get_release_by_tag(self, tag: str) -> Optional[Release]:
        self._enter("get_release_by_tag", tag)
        release = self.releases.get(tag)
        return release.model_copy(deep=True) if release else None

    def create_release(
        self,
        *,
        tag: str,
        prerelease: bool,
        name: Optional[str] = None,
        body: Optional[str] = None,
        commit: Optional[str] = None,
        draft: bool = False,
    ) -> Release:
        self._enter("create_release", tag)
        if tag in self.releases:
            raise ValueError(f"Duplicate release for tag {tag}")
        release = Release(
            id=self._allocate_id(),
            tag_name=tag,
            name=name or tag,
            body=body,
            prerelease=prerelease,
            draft=draft,
            target_commitish=commit or "main",
            html_url=f"https://example.invalid/{self.repo}/releases/tag/{tag}",
        )
        self.releases[tag] = release
        self._leave("create_release")
        return release.model_copy(deep=True)

    def update_release(
        self,
        release_id: int,
        *,
        prerelease: bool,
        name: Optional[str] = None,
        body: Optional[str] = None,
    ) -> Release:
        self._enter("update_release", release_id)
        release = self._by_id(release_id)
        release.prerelease = prerelease
        if name is not None:
            release.name = name
        if body is not None:
            release.body = body
        return release.model_copy(deep=True)

    def upload_asset(self, release_id: int, path: Path, *, name: str, content_type: str) -> ReleaseAsset:
        self._enter("upload_asset", name)
        release = self._by_id(release_id)
        if release.asset_named(name) is not None:
            raise ValueError(f"Asset {name} already exists on release {release_id}")
        data = Path(path).read_bytes()
        asset = ReleaseAsset(
            id=self._allocate_id(),
            name=name,
            size=len(data),
            content_type=content_type,
            browser_download_url=f"https://example.invalid/{self.repo}/releases/download/{release.tag_name}/{name}",
        )
        release.assets.append(asset)
        self.contents[asset.id] = data
        self._leave("upload_asset")
        return asset.model_copy()

    def delete_asset(self, asset_id: int) -> None:
        self._enter("delete_asset", asset_id)
        for release in self.releases.values():
            for asset in list(release.assets):
                if asset.id == asset_id:
                    release.assets.remove(asset)
                    self.contents.pop(asset_id, None)
                    return
        raise KeyError(f"Unknown asset {asset_id}")

    def operations(self, name: Optional[str] = None) -> List[object]:
        if name is None:
            return [operation for operation, _ in self.calls]
        return [detail for operation, detail in self.calls if operation == name]

    def _enter(self, operation: str, detail: object) -> None:
        self.calls.append((operation, detail))
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    def _leave(self, operation: str) -> None:
        pending = self._late_failures.get(operation)
        if pending:
            raise pending.pop(0)

    def _allocate_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _by_id(self, release_id: int) -> Release:
        for release in self.releases.values():
            if release.id == release_id:
                return release
        raise KeyError(f"Unknown release {release_id}")


__all__ = ["InMemoryReleaseHost"]
