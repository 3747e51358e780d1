# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Run Context

Tracks execution state for a single workflow run.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Set

from orchestrator.workflow.models import StepState


def generate_execution_id() -> str:
    return f"exec_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


class WorkflowRun:
    """
    Execution context for a workflow run.

    Tracks:
    - Step results (only for steps that executed)
    - Per-step state
    - Timing
    """

    def __init__(self, workflow_id: str, step_ids: Iterable[str], execution_id: Optional[str] = None):
        self.execution_id = execution_id or generate_execution_id()
        self.workflow_id = workflow_id
        self.started_at = datetime.now(timezone.utc)
        self.completed_at: Optional[datetime] = None
        self._start = time.perf_counter()

        self.step_results: Dict[str, Any] = {}
        self.completed_steps: Set[str] = set()
        self.step_states: Dict[str, StepState] = {step_id: "pending" for step_id in step_ids}

    def mark_executing(self, step_id: str) -> None:
        self.step_states[step_id] = "executing"

    def mark_completed(self, step_id: str, result: Any) -> None:
        """Store a step's result and mark it completed"""
        self.step_results[step_id] = result
        self.completed_steps.add(step_id)
        self.step_states[step_id] = "completed"

    def mark_failed(self, step_id: str) -> None:
        self.completed_steps.discard(step_id)
        self.step_states[step_id] = "failed"

    def is_completed(self, step_id: str) -> bool:
        return step_id in self.completed_steps

    def is_pending(self, step_id: str) -> bool:
        return self.step_states.get(step_id) == "pending"

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._start) * 1000, 2)

    def finalize(self) -> None:
        """Mark execution as complete"""
        self.completed_at = datetime.now(timezone.utc)
