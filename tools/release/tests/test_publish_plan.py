from __future__ import annotations

import pytest

from shipyard_release.publish.plan import (
    LookupOutcome,
    PublishAction,
    ReleaseLookup,
    TRANSITIONS,
    plan_release,
)
from shipyard_release.schemas.release import Release


def _release() -> Release:
    return Release(id=1, tag_name="dev-linux")


def test_lookup_from_release() -> None:
    assert ReleaseLookup.from_release(None).outcome is LookupOutcome.NOT_FOUND
    found = ReleaseLookup.from_release(_release())
    assert found.outcome is LookupOutcome.FOUND
    assert found.release is not None and found.release.id == 1


@pytest.mark.parametrize("allow_update", [True, False])
def test_missing_release_is_created(allow_update: bool) -> None:
    assert plan_release(ReleaseLookup.not_found(), allow_update=allow_update) is PublishAction.CREATE


def test_existing_release_is_updated_when_allowed() -> None:
    assert plan_release(ReleaseLookup.found(_release()), allow_update=True) is PublishAction.UPDATE


def test_existing_release_conflicts_without_update() -> None:
    assert plan_release(ReleaseLookup.found(_release()), allow_update=False) is PublishAction.CONFLICT


def test_transition_table_is_total() -> None:
    assert set(TRANSITIONS) == {(outcome, flag) for outcome in LookupOutcome for flag in (True, False)}
