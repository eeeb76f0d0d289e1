"""Remote start of the hosted Linux build.

The hosted workflow (``linux.yml``) has no inputs and is started with
``on: workflow_dispatch``; this module sends that dispatch for a repository and
ref so a release can be refreshed without a local toolchain.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field
from requests import Session
from requests.exceptions import RequestException

from ..hosting.github import API_VERSION, DEFAULT_API_URL
from ..secrets import resolve_secret_info

logger = logging.getLogger(__name__)

DISPATCH_TIMEOUT = 20


class WorkflowTriggerError(RuntimeError):
    """The dispatch could not be sent or was refused."""


class WorkflowSpec(BaseModel):
    slug: str
    workflow: str
    repo: Optional[str] = None
    ref: str = "main"
    token_env: str = "GITHUB_TOKEN"
    description: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class WorkflowDispatchResult(BaseModel):
    status: str
    repo: str
    workflow: str
    ref: str
    inputs: Dict[str, str] = Field(default_factory=dict)
    response_status: Optional[int] = None


def dispatch_url(api_url: str, repo: str, workflow: str) -> str:
    return f"{api_url.rstrip('/')}/repos/{repo}/actions/workflows/{workflow}/dispatches"


def trigger_workflow(
    spec: WorkflowSpec,
    *,
    repo: Optional[str] = None,
    ref: Optional[str] = None,
    inputs: Optional[Mapping[str, str]] = None,
    token: Optional[str] = None,
    token_env: Optional[str] = None,
    dry_run: bool = False,
    api_url: str = DEFAULT_API_URL,
    session: Optional[Session] = None,
) -> WorkflowDispatchResult:
    """Start ``spec.workflow`` on ``repo``/``ref``.

    ``dry_run`` returns the planned dispatch without resolving a token or
    touching the network. Inputs are forwarded only when given; the hosted
    workflow rejects ones it does not declare.
    """
    target_repo = repo or spec.repo
    if not target_repo or "/" not in target_repo:
        raise WorkflowTriggerError(f"Workflow '{spec.slug}' needs a repository as owner/name (got {target_repo!r}).")
    target_ref = ref or spec.ref
    forwarded = {key: str(value) for key, value in (inputs or {}).items()}

    if dry_run:
        return WorkflowDispatchResult(
            status="planned",
            repo=target_repo,
            workflow=spec.workflow,
            ref=target_ref,
            inputs=forwarded,
        )

    if not token:
        name = token_env or spec.token_env
        info = resolve_secret_info(name)
        if not info.value:
            raise WorkflowTriggerError(f"Token '{name}' not found. Checked resolvers: {info.summary()}.")
        token = info.value

    payload: Dict[str, object] = {"ref": target_ref}
    if forwarded:
        payload["inputs"] = forwarded

    logger.info("Dispatching %s on %s@%s", spec.workflow, target_repo, target_ref)
    try:
        response = (session or requests.Session()).post(
            dispatch_url(api_url, target_repo, spec.workflow),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
            json=payload,
            timeout=DISPATCH_TIMEOUT,
        )
    except RequestException as exc:
        raise WorkflowTriggerError(f"Dispatch of {spec.workflow} failed: {exc}") from exc

    if response.status_code not in (200, 204):
        raise WorkflowTriggerError(
            f"Dispatch of {spec.workflow} returned {response.status_code}: {response.text or response.reason}"
        )

    return WorkflowDispatchResult(
        status="dispatched",
        repo=target_repo,
        workflow=spec.workflow,
        ref=target_ref,
        inputs=forwarded,
        response_status=response.status_code,
    )


__all__ = [
    "WorkflowDispatchResult",
    "WorkflowSpec",
    "WorkflowTriggerError",
    "dispatch_url",
    "trigger_workflow",
]
