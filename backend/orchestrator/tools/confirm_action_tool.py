# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
confirm_action tool

Records the user's answer to a confirmation prompt. Cancelling drops the
pending entry; confirming reports the original call so the host re-invokes
that tool with the confirmationId, which is where the id gets consumed.
"""

import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from orchestrator.core.errors import ToolError, ToolErrorCategory
from orchestrator.core.logging import get_service_logger
from orchestrator.tools.confirmation import ConfirmationGate
from orchestrator.tools.types import ToolDefinition, ToolResult

logger = get_service_logger("confirm_action")

CONFIRM_ACTION_TOOL_NAME = "confirm_action"


class ConfirmActionParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    confirmation_id: str = Field(
        alias="confirmationId",
        description="The confirmation ID from a previous tool call",
    )
    confirmed: bool = Field(
        description="Whether the user confirmed (true) or cancelled (false) the action",
    )


class ConfirmActionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    confirmation_id: str = Field(alias="confirmationId")
    confirmed: bool
    message: str
    original_tool_name: Optional[str] = Field(default=None, alias="originalToolName")
    original_params: Optional[Dict[str, Any]] = Field(default=None, alias="originalParams")


def create_confirm_action_tool(gate: ConfirmationGate) -> ToolDefinition[ConfirmActionParams, ConfirmActionResult]:
    """Build the confirm_action tool bound to a confirmation gate."""

    async def execute(params: ConfirmActionParams) -> ToolResult[ConfirmActionResult]:
        start = time.perf_counter()

        def elapsed() -> float:
            return round((time.perf_counter() - start) * 1000, 2)

        try:
            pending = gate.get_pending(params.confirmation_id)
            if pending is None:
                raise ToolError(
                    "Confirmation not found or expired",
                    ToolErrorCategory.OPERATION_FAILED,
                    "The confirmation request has expired or is invalid. Please request the action again.",
                    {"confirmation_id": params.confirmation_id},
                )
        except ToolError as e:
            logger.warning(
                "confirm_action failed",
                extra={"confirmation_id": params.confirmation_id, "error": e.message},
            )
            return ToolResult.fail(
                e.to_user_message(),
                executionTime=elapsed(),
                errorCategory=e.category.value,
            )

        if params.confirmed:
            message = (
                f'Action confirmed. You can now proceed with "{pending.action}" on "{pending.target}".'
            )
            logger.info(
                "User confirmed destructive action",
                extra={"confirmation_id": pending.confirmation_id, "tool_name": pending.tool_name},
            )
        else:
            gate.cancel_action(pending.confirmation_id)
            message = (
                f'Action cancelled. "{pending.action}" on "{pending.target}" will not be performed.'
            )
            logger.info(
                "User cancelled destructive action",
                extra={"confirmation_id": pending.confirmation_id, "tool_name": pending.tool_name},
            )

        return ToolResult[ConfirmActionResult].ok(
            ConfirmActionResult(
                confirmation_id=pending.confirmation_id,
                confirmed=params.confirmed,
                message=message,
                original_tool_name=pending.tool_name,
                original_params=pending.params,
            ),
            executionTime=elapsed(),
            action=pending.action,
            severity=pending.severity,
        )

    return ToolDefinition(
        name=CONFIRM_ACTION_TOOL_NAME,
        description=(
            "Process user confirmation for a destructive action. Use this tool when the user responds "
            "to a confirmation prompt with 'yes', 'no', 'confirm', 'cancel', or similar responses. "
            "Returns the confirmation status and original action details."
        ),
        parameter_schema=ConfirmActionParams,
        execute=execute,
    )
