"""Hosted workflows known to the pipeline CLI."""

from .registry import WORKFLOWS, get_workflow, list_workflows

__all__ = ["WORKFLOWS", "get_workflow", "list_workflows"]
