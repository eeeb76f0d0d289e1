"""Create-or-update decision for a tagged release.

The lookup step yields a tagged :class:`ReleaseLookup`; :func:`plan_release`
maps it through a fixed transition table so every branch is visible in one
place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from ..schemas.release import Release


class LookupOutcome(str, Enum):
    NOT_FOUND = "not_found"
    FOUND = "found"


class PublishAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class ReleaseLookup:
    outcome: LookupOutcome
    release: Optional[Release] = None

    @classmethod
    def not_found(cls) -> "ReleaseLookup":
        return cls(outcome=LookupOutcome.NOT_FOUND)

    @classmethod
    def found(cls, release: Release) -> "ReleaseLookup":
        return cls(outcome=LookupOutcome.FOUND, release=release)

    @classmethod
    def from_release(cls, release: Optional[Release]) -> "ReleaseLookup":
        return cls.found(release) if release is not None else cls.not_found()


TRANSITIONS: Dict[Tuple[LookupOutcome, bool], PublishAction] = {
    (LookupOutcome.NOT_FOUND, False): PublishAction.CREATE,
    (LookupOutcome.NOT_FOUND, True): PublishAction.CREATE,
    (LookupOutcome.FOUND, True): PublishAction.UPDATE,
    (LookupOutcome.FOUND, False): PublishAction.CONFLICT,
}


def plan_release(lookup: ReleaseLookup, *, allow_update: bool) -> PublishAction:
    return TRANSITIONS[(lookup.outcome, bool(allow_update))]


__all__ = [
    "LookupOutcome",
    "PublishAction",
    "ReleaseLookup",
    "TRANSITIONS",
    "plan_release",
]
