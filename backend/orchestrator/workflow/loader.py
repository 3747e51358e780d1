# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Loader - Load workflow definitions from text files.

Files are YAML (.yaml/.yml) or JSON (.json) using the same camelCase keys
as the Workflow model. Transforms can't be expressed in files; workflows
that need one are registered from code.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from orchestrator.core.logging import get_service_logger
from orchestrator.workflow.exceptions import WorkflowValidationError
from orchestrator.workflow.models import Workflow

logger = get_service_logger("workflow.loader")

WORKFLOW_FILE_SUFFIXES = (".yaml", ".yml", ".json")


def load_workflow_file(path: Union[str, Path]) -> Workflow:
    """
    Parse a single workflow file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        WorkflowValidationError: If the file isn't a valid workflow definition
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workflow not found: {path}")

    with open(path, "r") as f:
        try:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise WorkflowValidationError(
                f"Could not parse workflow file {path.name}: {e}",
                hint="Check the file for syntax errors.",
            ) from e

    return parse_workflow(data, source=path.name)


def parse_workflow(data: Any, source: str = "<data>") -> Workflow:
    """Build a Workflow from a plain dict (camelCase or snake_case keys)."""
    if not isinstance(data, dict):
        raise WorkflowValidationError(
            f"Workflow definition in {source} must be a mapping",
            hint="The top level of a workflow file must be an object with id, name and steps.",
        )
    data = _strip_transforms(data, source)

    try:
        return Workflow.model_validate(data)
    except ValidationError as e:
        raise WorkflowValidationError(
            f"Invalid workflow definition in {source}: {e.error_count()} validation error(s)",
            hint="Please ensure the workflow has id, name and a list of steps with id and toolName.",
            details=e.errors(include_url=False),
        ) from e


def _strip_transforms(data: Dict[str, Any], source: str) -> Dict[str, Any]:
    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list):
        return data

    steps = []
    for step in raw_steps:
        if isinstance(step, dict) and ("transformResult" in step or "transform_result" in step):
            logger.warning(
                "transformResult is ignored in workflow files",
                extra={"source": source, "step_id": step.get("id")},
            )
            step = {k: v for k, v in step.items() if k not in ("transformResult", "transform_result")}
        steps.append(step)
    return {**data, "steps": steps}


def load_workflows(directory: Union[str, Path]) -> List[Workflow]:
    """
    Load every workflow file in a directory, sorted by filename.

    Invalid files are logged and skipped.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Workflows directory not found", extra={"path": str(directory)})
        return []

    workflows = []
    for path in sorted(directory.iterdir()):
        if path.suffix not in WORKFLOW_FILE_SUFFIXES or not path.is_file():
            continue
        try:
            workflows.append(load_workflow_file(path))
        except WorkflowValidationError as e:
            logger.error(
                "Skipping invalid workflow file",
                extra={"path": str(path), "error": e.message},
            )

    return workflows


def register_workflows_from_dir(engine, directory: Optional[Union[str, Path]]) -> List[str]:
    """
    Load and register workflows from a directory.

    Workflows that fail registration (duplicate id, bad graph) are logged
    and skipped. Returns the ids registered.
    """
    if directory is None:
        return []

    registered = []
    for workflow in load_workflows(directory):
        try:
            engine.register_workflow(workflow)
        except WorkflowValidationError as e:
            logger.error(
                "Skipping workflow that failed registration",
                extra={"workflow_id": workflow.id, "error": e.message},
            )
            continue
        registered.append(workflow.id)

    logger.info(
        "Workflows loaded from directory",
        extra={"path": str(directory), "workflow_ids": registered},
    )
    return registered
