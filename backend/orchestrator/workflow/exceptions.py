# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Exceptions

Workflow failures are ToolErrors so the host renders them the same way as
any other tool failure (message + hint).
"""

from typing import Any, Optional

from orchestrator.core.errors import ToolError, ToolErrorCategory


CONFIGURATION_HINT = "Workflow configuration error. Please contact support."


class WorkflowValidationError(ToolError):
    """Workflow definition rejected at registration"""
    def __init__(
        self,
        message: str,
        hint: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message, ToolErrorCategory.INVALID_PARAMETERS, hint, details)
        self.field = field


class WorkflowNotFoundError(ToolError):
    """No workflow registered under the requested id"""
    def __init__(self, workflow_id: str):
        super().__init__(
            f'Workflow "{workflow_id}" not found',
            ToolErrorCategory.INVALID_PARAMETERS,
            "Please check the workflow ID and try again.",
            {"workflow_id": workflow_id},
        )
        self.workflow_id = workflow_id


class WorkflowExecutionError(ToolError):
    """Workflow execution failed for a configuration reason"""
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, ToolErrorCategory.OPERATION_FAILED, CONFIGURATION_HINT, details)


class StepExecutionError(WorkflowExecutionError):
    """A step could not be executed (for example, its tool is missing)"""
    def __init__(self, step_id: str, tool_name: str, message: str):
        super().__init__(message, {"step_id": step_id, "tool_name": tool_name})
        self.step_id = step_id
        self.tool_name = tool_name


class UnresolvedReferenceError(ToolError):
    """A template referenced a step result path that doesn't exist"""
    def __init__(self, expression: str, available_steps: Optional[list] = None):
        super().__init__(
            f'Unknown reference "{{{{{expression}}}}}": no value at this path in prior step results',
            ToolErrorCategory.INVALID_PARAMETERS,
            "Check that the referenced step produced the expected data.",
            {"expression": expression, "available_steps": available_steps or []},
        )
        self.expression = expression
