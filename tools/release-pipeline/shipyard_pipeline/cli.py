from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from shipyard_release.hosting.github import DEFAULT_API_URL
from shipyard_release.secrets import resolve_secret_info, use_dotenv
from shipyard_release.workflows import WorkflowTriggerError, trigger_workflow

from .config import BuildProfile, PipelineConfig, load_config
from .errors import ConfigError
from .pipelines import (
    STEP_BUILD,
    STEP_ORDER,
    STEP_PROVISION,
    STEP_PUBLISH,
    exit_code_for,
    github_host_factory,
    run_release_pipeline,
)
from .workflows import get_workflow, list_workflows

DEFAULT_CONFIG_NAME = "shipyard.yaml"

logger = logging.getLogger("shipyard")

_COMMAND_STEPS: Dict[str, List[str]] = {
    "run": list(STEP_ORDER),
    "provision": [STEP_PROVISION],
    "build": [STEP_BUILD],
    "publish": [STEP_PUBLISH],
}


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _add_config_arguments(parser: argparse.ArgumentParser, *, publishes: bool) -> None:
    parser.add_argument("--config", type=Path, help=f"Pipeline YAML (default: ./{DEFAULT_CONFIG_NAME} if present)")
    parser.add_argument("--workspace-root", default=".")
    parser.add_argument("--package", action="append", help="System package to install (repeatable)")
    parser.add_argument("--profile", choices=[profile.value for profile in BuildProfile])
    parser.add_argument("--artifact", action="append", help="Expected artifact path (repeatable)")
    parser.add_argument("--tag")
    parser.add_argument("--repo", help="Hosting repository as owner/name")
    parser.add_argument("--commit", help="Commit the release should point at")
    parser.add_argument("--prerelease", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--allow-update", action=argparse.BooleanOptionalAction, default=None)
    if publishes:
        parser.add_argument("--token-env", help="Name of the secret holding the hosting token")
        parser.add_argument(
            "--dry-run",
            action=argparse.BooleanOptionalAction,
            default=False,
            help="Plan the release without creating, updating or uploading (provisioning and the build still run)",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shipyard", description="Provision, build and publish release artifacts")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Provision, build and publish in one pass")
    _add_config_arguments(run_parser, publishes=True)

    provision_parser = subparsers.add_parser("provision", help="Install required system packages")
    _add_config_arguments(provision_parser, publishes=False)

    build_parser_ = subparsers.add_parser("build", help="Run the build and verify artifacts")
    _add_config_arguments(build_parser_, publishes=False)

    publish_parser = subparsers.add_parser("publish", help="Create or update the release and upload artifacts")
    _add_config_arguments(publish_parser, publishes=True)

    workflow = subparsers.add_parser("workflow", help="Inspect and trigger hosted workflows")
    workflow_subparsers = workflow.add_subparsers(dest="workflow_command", required=True)
    workflow_subparsers.add_parser("list", help="List known workflows")
    workflow_trigger = workflow_subparsers.add_parser("trigger", help="Dispatch a workflow by slug")
    workflow_trigger.add_argument("--workflow", required=True, dest="workflow_slug")
    workflow_trigger.add_argument("--repo")
    workflow_trigger.add_argument("--ref")
    workflow_trigger.add_argument("--input", action="append")
    workflow_trigger.add_argument("--token-env")
    workflow_trigger.add_argument(
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Print the dispatch without sending it",
    )
    workflow_trigger.add_argument("--api-url", default=DEFAULT_API_URL)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "workflow":
        use_dotenv(Path.cwd() / ".env")
        return _run_workflow(args)

    workspace = Path(args.workspace_root).resolve()
    use_dotenv(workspace / ".env")

    try:
        config = _load_effective_config(args, workspace)
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    only = _COMMAND_STEPS[args.command]
    token: Optional[str] = None
    if STEP_PUBLISH in only:
        token = _resolve_token(getattr(args, "token_env", None) or config.release.token_env)

    result = run_release_pipeline(
        config,
        workspace_root=workspace,
        host_factory=github_host_factory(config.release, token),
        dry_run=getattr(args, "dry_run", False),
        only=only,
    )
    payload = {"command": args.command, **result.to_dict()}
    print(json.dumps(payload, indent=2))
    if not result.succeeded:
        print(f"Step '{result.failed_step}' failed: {result.cause}", file=sys.stderr)
    return exit_code_for(result)


def _load_effective_config(args: argparse.Namespace, workspace: Path) -> PipelineConfig:
    config_path: Optional[Path] = args.config
    if config_path is None and (workspace / DEFAULT_CONFIG_NAME).exists():
        config_path = workspace / DEFAULT_CONFIG_NAME
    config = load_config(config_path) if config_path else PipelineConfig()
    if config_path:
        logger.debug("Loaded pipeline config from %s", config_path)
    return config.with_overrides(
        tag=args.tag,
        prerelease=args.prerelease,
        allow_update=args.allow_update,
        profile=args.profile,
        artifacts=args.artifact,
        packages=args.package,
        repo=args.repo,
        commit=args.commit,
    )


def _resolve_token(token_env: str) -> Optional[str]:
    info = resolve_secret_info(token_env)
    if not info.value:
        logger.warning("Token '%s' not resolved (checked: %s)", token_env, info.summary())
    return info.value


def _run_workflow(args: argparse.Namespace) -> int:
    if args.workflow_command == "list":
        specs = [spec.model_dump(mode="json") for spec in list_workflows()]
        print(json.dumps(specs, indent=2))
        return 0

    try:
        spec = get_workflow(args.workflow_slug)
    except KeyError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    try:
        input_values = _parse_key_value_args(args.input or [])
        result = trigger_workflow(
            spec,
            repo=args.repo,
            ref=args.ref,
            inputs=input_values,
            token_env=args.token_env,
            dry_run=args.dry_run,
            api_url=args.api_url,
        )
    except (ValueError, WorkflowTriggerError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0


def _parse_key_value_args(values: list[str]) -> dict[str, str]:
    options: dict[str, str] = {}
    for entry in values:
        if "=" not in entry:
            raise ValueError(f"Argument must be key=value (got '{entry}')")
        key, raw_value = entry.split("=", 1)
        options[key.strip()] = raw_value.strip()
    return options


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
