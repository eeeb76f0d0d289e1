"""Sequential step runner."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from shipyard_release.publish.errors import PublishError

from .errors import PipelineError

logger = logging.getLogger(__name__)

STEP_ERRORS: Tuple[Type[Exception], ...] = (PipelineError, PublishError)


@dataclass(frozen=True)
class Step:
    name: str
    action: Callable[[Mapping[str, object]], object]


@dataclass
class PipelineResult:
    succeeded: bool
    failed_step: Optional[str] = None
    cause: Optional[Exception] = None
    completed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    outputs: Dict[str, object] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return "ok" if self.succeeded else "failed"

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "status": self.status,
            "completed": self.completed,
            "skipped": self.skipped,
            "outputs": {name: _jsonable(value) for name, value in self.outputs.items()},
        }
        if not self.succeeded:
            payload["failed_step"] = self.failed_step
            payload["cause"] = _jsonable(self.cause)
        return payload


def run(steps: Sequence[Step]) -> PipelineResult:
    """Execute ``steps`` in order, halting at the first step error.

    Each action receives the outputs of the steps that completed before it.
    The failing step's exception is returned as-is in ``cause``. Earlier
    steps are not rolled back.
    """
    names = [step.name for step in steps]
    if len(set(names)) != len(names):
        raise ValueError(f"Step names must be unique: {names}")

    result = PipelineResult(succeeded=True)
    for index, step in enumerate(steps):
        logger.info("Running step %s", step.name)
        try:
            output = step.action(dict(result.outputs))
        except STEP_ERRORS as exc:
            logger.error("Step %s failed: %s", step.name, exc)
            result.succeeded = False
            result.failed_step = step.name
            result.cause = exc
            result.skipped = names[index + 1 :]
            return result
        result.outputs[step.name] = output
        result.completed.append(step.name)
    return result


def _jsonable(value: object) -> object:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, BaseException):
        return {"error": type(value).__name__, "message": str(value)}
    if value is None or isinstance(value, (str, int, float, bool, dict)):
        return value
    return str(value)


__all__ = ["PipelineResult", "STEP_ERRORS", "Step", "run"]
