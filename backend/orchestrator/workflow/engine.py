# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Engine

Wave-based DAG execution of registered tool workflows.

Steps whose dependencies have all completed run together in one wave,
bounded by max_parallel_steps. The first failure (in declaration order)
ends the run once its wave settles; results of steps that finished are
kept in the returned WorkflowResult.
"""

import asyncio
import inspect
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from orchestrator.core.config import Config, get_config
from orchestrator.core.logging import get_service_logger
from orchestrator.tools.registry import ToolCatalog
from orchestrator.workflow import templates
from orchestrator.workflow.context import WorkflowRun
from orchestrator.workflow.exceptions import (
    StepExecutionError,
    WorkflowExecutionError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)
from orchestrator.workflow.models import ProgressCallback, Workflow, WorkflowResult, WorkflowStep
from orchestrator.workflow.validation import compute_ancestors, validate_references, validate_workflow

logger = get_service_logger("workflow")


@dataclass(frozen=True)
class CompiledStep:
    step: WorkflowStep
    index: int
    bindings: templates.MappingTemplate


@dataclass(frozen=True)
class CompiledWorkflow:
    workflow: Workflow
    steps: Tuple[CompiledStep, ...]
    order: Tuple[str, ...]
    step_ids: FrozenSet[str]


def compile_workflow(workflow: Workflow) -> CompiledWorkflow:
    """
    Validate a workflow and compile its step params.

    The compiled form keeps its own deep copy of the definition, so later
    changes to the caller's objects can't drift from the bindings.

    Raises:
        WorkflowValidationError: If the structure or any template is invalid
    """
    workflow = workflow.model_copy(deep=True)
    order = validate_workflow(workflow)
    bindings = {step.id: templates.compile_params(step.params) for step in workflow.steps}
    validate_references(workflow, bindings, compute_ancestors(workflow, order))

    return CompiledWorkflow(
        workflow=workflow,
        steps=tuple(
            CompiledStep(step=step, index=index, bindings=bindings[step.id])
            for index, step in enumerate(workflow.steps)
        ),
        order=tuple(order),
        step_ids=frozenset(bindings),
    )


class WorkflowEngine:
    """
    Registry and executor for multi-step tool workflows.

    Args:
        tool_catalog: Catalog steps look their tools up in (at execution time)
        strict_references: Fail a step when a reference into a step result
            doesn't resolve, instead of passing None
        max_parallel_steps: Upper bound on steps running at once
        config: Defaults for the two settings above
    """

    def __init__(
        self,
        tool_catalog: ToolCatalog,
        strict_references: Optional[bool] = None,
        max_parallel_steps: Optional[int] = None,
        config: Optional[Config] = None,
    ):
        config = config or get_config()
        self.tool_catalog = tool_catalog
        self.strict_references = config.strict_references if strict_references is None else strict_references
        self.max_parallel_steps = max(1, max_parallel_steps or config.max_parallel_steps)
        self._workflows: Dict[str, CompiledWorkflow] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_workflow(self, workflow: Workflow) -> None:
        """
        Validate and register a workflow.

        Raises:
            WorkflowValidationError: If the workflow is invalid or its id is taken
        """
        try:
            compiled = compile_workflow(workflow)
            with self._lock:
                if workflow.id in self._workflows:
                    raise WorkflowValidationError(
                        f'Workflow with ID "{workflow.id}" is already registered',
                        hint="Please use a unique workflow ID.",
                        field="id",
                    )
                self._workflows[workflow.id] = compiled
        except WorkflowValidationError as e:
            logger.error(
                "Failed to register workflow",
                extra={"workflow_id": workflow.id, "error": e.message, "field": e.field},
            )
            raise

        logger.info(
            "Workflow registered",
            extra={"workflow_id": workflow.id, "workflow_name": workflow.name, "step_count": len(workflow.steps)},
        )

    def unregister_workflow(self, workflow_id: str) -> bool:
        with self._lock:
            return self._workflows.pop(workflow_id, None) is not None

    def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """A copy of the registered definition; editing it doesn't affect execution."""
        compiled = self._workflows.get(workflow_id)
        return compiled.workflow.model_copy(deep=True) if compiled else None

    def get_all_workflows(self) -> List[Workflow]:
        return [compiled.workflow.model_copy(deep=True) for compiled in list(self._workflows.values())]

    def get_workflow_ids(self) -> List[str]:
        return list(self._workflows.keys())

    def has_workflow(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows

    def count(self) -> int:
        return len(self._workflows)

    def clear(self) -> None:
        with self._lock:
            self._workflows.clear()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def resolve_template_variables(
        self,
        params: Mapping[str, Any],
        initial_params: Optional[Mapping[str, Any]] = None,
        step_results: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Resolve {{...}} references in a params object. Unresolved references become None."""
        return templates.resolve_template_variables(params, initial_params, step_results)

    def resolve_variable(
        self,
        path: str,
        initial_params: Optional[Mapping[str, Any]] = None,
        step_results: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return templates.resolve_variable(path, initial_params, step_results)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute_workflow(
        self,
        workflow_id: str,
        initial_params: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> WorkflowResult:
        """
        Execute a registered workflow.

        Step failures don't raise: they come back as success=False with the
        error, the failed step id, and the results of steps that completed.

        Args:
            workflow_id: Registered workflow id
            initial_params: Values for {{name}} references
            on_progress: Called as (step_id, index, total, result) after each
                step completes; may be a coroutine function

        Raises:
            WorkflowNotFoundError: If no workflow has this id
        """
        compiled = self._workflows.get(workflow_id)
        if compiled is None:
            logger.error("Workflow not found", extra={"workflow_id": workflow_id})
            raise WorkflowNotFoundError(workflow_id)

        params = dict(initial_params or {})
        run = WorkflowRun(workflow_id, [cs.step.id for cs in compiled.steps])
        semaphore = asyncio.Semaphore(self.max_parallel_steps)

        logger.info(
            "Executing workflow",
            extra={
                "workflow_id": workflow_id,
                "execution_id": run.execution_id,
                "step_count": len(compiled.steps),
                "initial_params": sorted(params),
            },
        )

        try:
            while len(run.completed_steps) < len(compiled.steps):
                ready = self._get_ready_steps(compiled, run)

                if not ready:
                    incomplete = [cs.step.id for cs in compiled.steps if not run.is_completed(cs.step.id)]
                    raise WorkflowExecutionError(
                        f"Workflow deadlock: no ready steps but {len(incomplete)} steps incomplete: {incomplete}",
                        {"incomplete_steps": incomplete},
                    )

                failures = await self._execute_wave(ready, compiled, run, params, on_progress, semaphore)
                if failures:
                    failed, error = failures[0]
                    message = getattr(error, "message", None) or str(error) or type(error).__name__
                    logger.error(
                        "Workflow step failed",
                        extra={
                            "workflow_id": workflow_id,
                            "execution_id": run.execution_id,
                            "step_id": failed.step.id,
                            "tool_name": failed.step.tool_name,
                            "error": message,
                        },
                    )
                    return self._build_result(run, success=False, error=message, failed_step_id=failed.step.id)

        except WorkflowExecutionError as e:
            logger.error(
                "Workflow execution failed",
                extra={"workflow_id": workflow_id, "execution_id": run.execution_id, "error": e.message},
            )
            return self._build_result(run, success=False, error=e.message)

        logger.info(
            "Workflow completed successfully",
            extra={
                "workflow_id": workflow_id,
                "execution_id": run.execution_id,
                "execution_time": run.elapsed_ms(),
            },
        )
        return self._build_result(run, success=True)

    def _get_ready_steps(self, compiled: CompiledWorkflow, run: WorkflowRun) -> List[CompiledStep]:
        """Pending steps whose dependencies have all completed, in declaration order"""
        return [
            cs for cs in compiled.steps
            if run.is_pending(cs.step.id) and all(run.is_completed(dep) for dep in cs.step.depends_on)
        ]

    async def _execute_wave(
        self,
        ready: List[CompiledStep],
        compiled: CompiledWorkflow,
        run: WorkflowRun,
        initial_params: Dict[str, Any],
        on_progress: Optional[ProgressCallback],
        semaphore: asyncio.Semaphore,
    ) -> List[Tuple[CompiledStep, Exception]]:
        """Execute a wave of steps concurrently. Returns failures in declaration order."""
        tasks = [
            self._execute_step(cs, compiled, run, initial_params, on_progress, semaphore)
            for cs in ready
        ]

        # Wait for every step in the wave, capturing exceptions
        results = await asyncio.gather(*tasks, return_exceptions=True)

        failures = []
        for cs, result in zip(ready, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                failures.append((cs, result))
        return failures

    async def _execute_step(
        self,
        cs: CompiledStep,
        compiled: CompiledWorkflow,
        run: WorkflowRun,
        initial_params: Dict[str, Any],
        on_progress: Optional[ProgressCallback],
        semaphore: asyncio.Semaphore,
    ) -> None:
        """Execute a single step"""
        step = cs.step

        async with semaphore:
            missing = [dep for dep in step.depends_on if not run.is_completed(dep)]
            if missing:
                run.mark_failed(step.id)
                raise WorkflowExecutionError(
                    f'Step "{step.id}" depends on "{missing[0]}" which has not been executed',
                    {"step_id": step.id, "missing": missing},
                )

            run.mark_executing(step.id)
            logger.debug(
                "Executing workflow step",
                extra={
                    "execution_id": run.execution_id,
                    "step_id": step.id,
                    "tool_name": step.tool_name,
                    "step_index": cs.index + 1,
                    "total_steps": len(compiled.steps),
                },
            )

            try:
                strict_steps = compiled.step_ids if self.strict_references else ()
                params = templates.resolve_binding(cs.bindings, initial_params, run.step_results, strict_steps)

                tool = self.tool_catalog.get(step.tool_name)
                if tool is None:
                    raise StepExecutionError(
                        step.id,
                        step.tool_name,
                        f'Tool "{step.tool_name}" not found for step "{step.id}"',
                    )

                result = await tool.execute(tool.parse_arguments(params))

                if step.transform_result is not None:
                    result = step.transform_result(result, MappingProxyType(dict(run.step_results)))

                run.mark_completed(step.id, result)
                await self._notify_progress(on_progress, step.id, cs.index, len(compiled.steps), result)
            except Exception:
                run.mark_failed(step.id)
                raise

        logger.debug(
            "Workflow step completed",
            extra={"execution_id": run.execution_id, "step_id": step.id},
        )

    async def _notify_progress(
        self,
        on_progress: Optional[ProgressCallback],
        step_id: str,
        index: int,
        total: int,
        result: Any,
    ) -> None:
        if on_progress is None:
            return
        outcome = on_progress(step_id, index, total, result)
        if inspect.isawaitable(outcome):
            await outcome

    def _build_result(
        self,
        run: WorkflowRun,
        success: bool,
        error: Optional[str] = None,
        failed_step_id: Optional[str] = None,
    ) -> WorkflowResult:
        run.finalize()
        return WorkflowResult(
            success=success,
            step_results=dict(run.step_results),
            error=error,
            failed_step_id=failed_step_id,
            execution_time=run.elapsed_ms(),
            execution_id=run.execution_id,
            step_states=dict(run.step_states),
            started_at=run.started_at,
            completed_at=run.completed_at,
        )
