# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Models

Pydantic models for workflow definitions and execution results.
camelCase aliases match the JSON shape workflow files and hosts use.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


StepState = Literal["pending", "executing", "completed", "failed"]

# (raw tool result, prior step results) -> stored result
TransformResult = Callable[[Any, Mapping[str, Any]], Any]

# (step id, declaration index, total steps, result)
ProgressCallback = Callable[[str, int, int, Any], Union[None, Awaitable[None]]]


class WorkflowStep(BaseModel):
    """One tool invocation within a workflow"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    tool_name: str = Field(alias="toolName")
    params: Dict[str, Any] = {}
    depends_on: List[str] = Field(default_factory=list, alias="dependsOn")
    transform_result: Optional[TransformResult] = Field(default=None, alias="transformResult", exclude=True)
    description: Optional[str] = None


class Workflow(BaseModel):
    """A registered graph of tool invocations"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    steps: List[WorkflowStep]
    requires_confirmation: bool = Field(default=False, alias="requiresConfirmation")
    tags: List[str] = []


class WorkflowResult(BaseModel):
    """Outcome of a workflow run - step_results holds only steps that executed"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    step_results: Dict[str, Any] = Field(default_factory=dict, alias="stepResults")
    error: Optional[str] = None
    failed_step_id: Optional[str] = Field(default=None, alias="failedStepId")
    execution_time: float = Field(alias="executionTime")  # milliseconds
    execution_id: Optional[str] = Field(default=None, alias="executionId")
    step_states: Dict[str, StepState] = Field(default_factory=dict, alias="stepStates")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
