"""Build toolchain invocation and artifact verification."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from shipyard_release.publish.models import BuildArtifact

from .config import BuildProfile
from .errors import COMMAND_NOT_FOUND, BuildError

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ARGS: Dict[BuildProfile, List[str]] = {
    BuildProfile.DEBUG: [],
    BuildProfile.RELEASE: ["--release"],
}


class Builder:
    def __init__(
        self,
        workspace_root: Path,
        *,
        command: Sequence[str] = ("cargo", "build"),
        profile_args: Optional[Mapping[BuildProfile, Sequence[str]]] = None,
        env: Optional[Mapping[str, str]] = None,
        working_dir: Optional[str] = None,
    ) -> None:
        self.workspace_root = Path(workspace_root)
        self.command = list(command)
        self.profile_args = {key: list(value) for key, value in (profile_args or DEFAULT_PROFILE_ARGS).items()}
        self.env = dict(env or {})
        cwd = Path(working_dir) if working_dir else self.workspace_root
        self.cwd = cwd if cwd.is_absolute() else self.workspace_root / cwd

    def command_for(self, profile: BuildProfile) -> List[str]:
        return [*self.command, *self.profile_args.get(BuildProfile(profile), [])]

    def build(self, profile: BuildProfile, expected_artifacts: Sequence[str]) -> List[BuildArtifact]:
        """Run the build and return the expected artifacts.

        A zero exit status is not enough: every expected path must exist
        afterwards or the build is reported as incomplete.
        """
        command = self.command_for(profile)
        merged_env = os.environ.copy()
        merged_env.update(self.env)

        logger.info("Building (%s): %s", BuildProfile(profile).value, " ".join(command))
        try:
            proc = subprocess.run(
                command,
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                env=merged_env,
                check=False,
            )
        except OSError as exc:
            logger.error("Cannot start build command %s in %s: %s", command[0], self.cwd, exc)
            raise BuildError.compile_failed(COMMAND_NOT_FOUND, str(exc)) from exc
        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip() or (proc.stdout or "").strip()
            logger.error("Build failed (exit %s)", proc.returncode)
            raise BuildError.compile_failed(proc.returncode, stderr)

        artifacts: List[BuildArtifact] = []
        for entry in expected_artifacts:
            path = Path(entry)
            if not path.is_absolute():
                path = self.workspace_root / path
            if not path.is_file():
                raise BuildError.artifact_missing(str(entry))
            artifacts.append(BuildArtifact(local_path=path, must_exist=True))
            logger.debug("Artifact ready: %s", path)
        return artifacts


__all__ = ["Builder", "DEFAULT_PROFILE_ARGS"]
