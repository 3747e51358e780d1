# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Engine

Dependency-ordered, multi-step tool execution with {{template}} bindings
between steps.
"""

from orchestrator.workflow.builtin import BUILTIN_WORKFLOWS, register_builtin_workflows
from orchestrator.workflow.engine import WorkflowEngine
from orchestrator.workflow.exceptions import (
    StepExecutionError,
    UnresolvedReferenceError,
    WorkflowExecutionError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)
from orchestrator.workflow.loader import load_workflows, register_workflows_from_dir
from orchestrator.workflow.models import Workflow, WorkflowResult, WorkflowStep

__all__ = [
    "BUILTIN_WORKFLOWS",
    "StepExecutionError",
    "UnresolvedReferenceError",
    "Workflow",
    "WorkflowEngine",
    "WorkflowExecutionError",
    "WorkflowNotFoundError",
    "WorkflowResult",
    "WorkflowStep",
    "WorkflowValidationError",
    "load_workflows",
    "register_builtin_workflows",
    "register_workflows_from_dir",
]
