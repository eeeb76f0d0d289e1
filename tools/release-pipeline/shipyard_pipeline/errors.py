"""Step-level failures raised by the pipeline components."""

from __future__ import annotations

from enum import Enum
from typing import Optional

# Exit status reported when the command could not be started at all.
COMMAND_NOT_FOUND = 127


class PipelineError(RuntimeError):
    """Raised when a pipeline execution fails validation or runtime checks."""

    def to_dict(self) -> dict[str, object]:
        return {"error": type(self).__name__, "message": str(self)}


class ConfigError(PipelineError):
    """Pipeline configuration is missing, unreadable, or invalid."""


class ProvisionError(PipelineError):
    def __init__(self, package: str, exit_code: int, stderr: str = "") -> None:
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"Installing package '{package}' failed with exit code {exit_code}{detail}")
        self.package = package
        self.exit_code = exit_code
        self.stderr = stderr

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload.update({"package": self.package, "exit_code": self.exit_code})
        return payload


class BuildErrorKind(str, Enum):
    COMPILE_FAILED = "compile_failed"
    ARTIFACT_MISSING = "artifact_missing"


class BuildError(PipelineError):
    def __init__(
        self,
        kind: BuildErrorKind,
        message: str,
        *,
        exit_code: Optional[int] = None,
        stderr: str = "",
        path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.exit_code = exit_code
        self.stderr = stderr
        self.path = path

    @classmethod
    def compile_failed(cls, exit_code: int, stderr: str) -> "BuildError":
        return cls(
            BuildErrorKind.COMPILE_FAILED,
            f"Build command exited with {exit_code}",
            exit_code=exit_code,
            stderr=stderr,
        )

    @classmethod
    def artifact_missing(cls, path: str) -> "BuildError":
        return cls(
            BuildErrorKind.ARTIFACT_MISSING,
            f"Build succeeded but expected artifact is missing: {path}",
            path=path,
        )

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload.update({"kind": self.kind.value, "exit_code": self.exit_code, "path": self.path})
        if self.stderr:
            payload["stderr"] = self.stderr
        return payload


__all__ = [
    "COMMAND_NOT_FOUND",
    "BuildError",
    "BuildErrorKind",
    "ConfigError",
    "PipelineError",
    "ProvisionError",
]
