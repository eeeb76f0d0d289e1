"""Data models used during release publishing."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    local_path: Path
    must_exist: bool = True

    @property
    def name(self) -> str:
        return self.local_path.name

    def to_dict(self) -> Dict[str, object]:
        return {"local_path": str(self.local_path), "must_exist": self.must_exist}


@dataclass(frozen=True, slots=True)
class ReleaseSpec:
    tag: str
    prerelease: bool = False
    allow_update: bool = False
    artifacts: Tuple[BuildArtifact, ...] = ()
    name: Optional[str] = None
    body: Optional[str] = None
    commit: Optional[str] = None
    draft: bool = False
    replace_artifacts: bool = True
    remove_artifacts: bool = False
    content_type: str = DEFAULT_CONTENT_TYPE

    def __post_init__(self) -> None:
        if not self.tag:
            raise ValueError("Release tag cannot be empty.")
        # Lists are accepted for convenience but stored as a tuple.
        object.__setattr__(self, "artifacts", tuple(self.artifacts))


@dataclass(slots=True)
class UploadResult:
    name: str
    local_path: str
    asset_id: Optional[int] = None
    replaced: bool = False
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "local_path": self.local_path,
            "asset_id": self.asset_id,
            "replaced": self.replaced,
            "url": self.url,
        }


@dataclass(slots=True)
class PublishResult:
    status: str
    action: str
    tag: str
    release_id: Optional[int] = None
    url: Optional[str] = None
    uploaded: List[UploadResult] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status,
            "action": self.action,
            "tag": self.tag,
            "release_id": self.release_id,
            "url": self.url,
            "uploaded": [upload.to_dict() for upload in self.uploaded],
            "removed": self.removed,
            "skipped": self.skipped,
            "warnings": self.warnings,
            "logs": self.logs,
        }
