from __future__ import annotations

from typing import Dict, Iterable

from shipyard_release.workflows import WorkflowSpec

WORKFLOWS: Dict[str, WorkflowSpec] = {
    "linux": WorkflowSpec(
        slug="linux",
        workflow="linux.yml",
        description="Install OpenCL headers, cargo build --release, refresh the dev-linux prerelease.",
    ),
}


def get_workflow(slug: str) -> WorkflowSpec:
    try:
        return WORKFLOWS[slug].model_copy()
    except KeyError as exc:
        available = ", ".join(sorted(WORKFLOWS))
        raise KeyError(f"Unknown workflow slug '{slug}'. Available workflows: {available}.") from exc


def list_workflows() -> Iterable[WorkflowSpec]:
    for spec in WORKFLOWS.values():
        yield spec.model_copy()
