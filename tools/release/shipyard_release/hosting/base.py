"""Hosting service contract used by the release publisher."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from ..schemas.release import Release, ReleaseAsset


class HostError(RuntimeError):
    """Raised when the hosting service rejects a request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientHostError(HostError):
    """A failure worth retrying: connection drop, timeout, 5xx, rate limit."""


class HostAuthError(HostError):
    """Credential missing, invalid, or lacking permission."""


class ReleaseHost(Protocol):
    def get_release_by_tag(self, tag: str) -> Optional[Release]:
        ...

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
        ...

    def update_release(
        self,
        release_id: int,
        *,
        prerelease: bool,
        name: Optional[str] = None,
        body: Optional[str] = None,
    ) -> Release:
        ...

    def upload_asset(self, release_id: int, path: Path, *, name: str, content_type: str) -> ReleaseAsset:
        ...

    def delete_asset(self, asset_id: int) -> None:
        ...


__all__ = [
    "HostAuthError",
    "HostError",
    "ReleaseHost",
    "TransientHostError",
]
