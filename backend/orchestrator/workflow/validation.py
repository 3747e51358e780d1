# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Validation

DAG validation using topological sort (Kahn's algorithm), plus checks that
every template reference into a step result names an ancestor of the step.
"""

from collections import deque
from typing import Dict, FrozenSet, List, Mapping, Set

from orchestrator.workflow.exceptions import WorkflowValidationError
from orchestrator.workflow.models import Workflow
from orchestrator.workflow.templates import MappingTemplate, iter_references


def validate_workflow(workflow: Workflow) -> List[str]:
    """
    Validate workflow structure.

    Returns topological order of step ids.

    Raises WorkflowValidationError if validation fails.
    """
    # 1. Required fields
    if not workflow.id or not workflow.name:
        raise WorkflowValidationError(
            "Workflow must have id and name",
            hint="Please provide a unique ID and descriptive name for the workflow.",
            field="id",
        )

    # 2. Empty workflow check
    if len(workflow.steps) == 0:
        raise WorkflowValidationError(
            "Workflow must have at least one step",
            hint="Please define at least one step in the workflow.",
            field="steps",
        )

    # 3. Step fields and duplicate ids
    seen: Set[str] = set()
    for step in workflow.steps:
        if not step.id or not step.tool_name:
            raise WorkflowValidationError(
                "Each workflow step must have id and toolName",
                hint="Please ensure all steps have a unique ID and valid tool name.",
                field="steps",
            )
        if step.id in seen:
            raise WorkflowValidationError(
                f'Duplicate step ID "{step.id}" in workflow',
                hint="Each step must have a unique ID within the workflow.",
                field="steps",
            )
        seen.add(step.id)

    # 4. Dependency references
    for step in workflow.steps:
        for dep in step.depends_on:
            if dep == step.id:
                raise WorkflowValidationError(
                    f'Step "{step.id}" cannot depend on itself',
                    hint="Remove the step from its own dependsOn list.",
                    field="dependsOn",
                )
            if dep not in seen:
                raise WorkflowValidationError(
                    f'Step "{step.id}" depends on non-existent step "{dep}"',
                    hint="Please ensure all dependencies reference valid step IDs.",
                    field="dependsOn",
                )

    # 5. DAG validation
    return topological_sort(workflow)


def topological_sort(workflow: Workflow) -> List[str]:
    """
    Perform topological sort using Kahn's algorithm.

    Start steps are queued in declaration order.

    Raises WorkflowValidationError if the dependency graph has a cycle.
    """
    dependents: Dict[str, List[str]] = {step.id: [] for step in workflow.steps}
    in_degree: Dict[str, int] = {step.id: 0 for step in workflow.steps}

    for step in workflow.steps:
        for dep in dict.fromkeys(step.depends_on):
            dependents[dep].append(step.id)
            in_degree[step.id] += 1

    queue = deque([step_id for step_id, degree in in_degree.items() if degree == 0])
    order = []

    while queue:
        step_id = queue.popleft()
        order.append(step_id)
        for dependent in dependents[step_id]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(order) != len(workflow.steps):
        cyclic = [step.id for step in workflow.steps if in_degree[step.id] > 0]
        raise WorkflowValidationError(
            f"Cycle detected in workflow dependencies involving steps: {', '.join(cyclic)}",
            hint="Workflow steps must form a directed acyclic graph.",
            field="dependsOn",
            details={"steps": cyclic},
        )

    return order


def compute_ancestors(workflow: Workflow, order: List[str]) -> Dict[str, FrozenSet[str]]:
    """Transitive dependencies of every step. order must be topological."""
    direct = {step.id: step.depends_on for step in workflow.steps}
    ancestors: Dict[str, FrozenSet[str]] = {}
    for step_id in order:
        collected: Set[str] = set()
        for dep in direct[step_id]:
            collected.add(dep)
            collected |= ancestors[dep]
        ancestors[step_id] = frozenset(collected)
    return ancestors


def validate_references(
    workflow: Workflow,
    bindings: Mapping[str, MappingTemplate],
    ancestors: Mapping[str, FrozenSet[str]],
) -> None:
    """
    Check that references into step results only name ancestors.

    A reference whose head isn't a step id is an initial param lookup and
    can't be checked before execution.
    """
    step_ids = {step.id for step in workflow.steps}

    for step in workflow.steps:
        for reference in iter_references(bindings[step.id]):
            head = reference.head
            if head not in step_ids:
                continue
            if head == step.id:
                raise WorkflowValidationError(
                    f'Step "{step.id}" references its own result in "{{{{{reference.expression}}}}}"',
                    hint="A step can only reference results of steps it depends on.",
                    field="params",
                )
            if head not in ancestors[step.id]:
                raise WorkflowValidationError(
                    f'Step "{step.id}" references step "{head}" in "{{{{{reference.expression}}}}}" '
                    f"without depending on it",
                    hint=f'Add "{head}" to dependsOn of step "{step.id}".',
                    field="params",
                )
