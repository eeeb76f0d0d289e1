"""Publish failure taxonomy."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class PublishErrorKind(str, Enum):
    TAG_CONFLICT = "tag_conflict"
    NETWORK_ERROR = "network_error"
    UNAUTHORIZED = "unauthorized"
    ARTIFACT_MISSING = "artifact_missing"
    ASSET_CONFLICT = "asset_conflict"
    API_ERROR = "api_error"


class PublishError(RuntimeError):
    """Raised when a release cannot be created, updated or populated."""

    def __init__(
        self,
        kind: PublishErrorKind,
        message: str,
        *,
        tag: Optional[str] = None,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.tag = tag
        self.path = path
        self.cause = cause

    def to_dict(self) -> dict[str, object]:
        return {
            "error": type(self).__name__,
            "kind": self.kind.value,
            "message": str(self),
            "tag": self.tag,
            "path": self.path,
            "cause": str(self.cause) if self.cause else None,
        }


__all__ = ["PublishError", "PublishErrorKind"]
