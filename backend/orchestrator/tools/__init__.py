# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool contract, catalog, execution context and confirmation gate.
"""

from orchestrator.tools.confirm_action_tool import create_confirm_action_tool
from orchestrator.tools.confirmation import (
    ConfirmationGate,
    ConfirmationRequest,
    PendingConfirmation,
    guard_destructive_action,
)
from orchestrator.tools.context import DestructiveClassification, ToolContext
from orchestrator.tools.registry import ToolAdapter, ToolCatalog
from orchestrator.tools.types import SearchResult, ToolDefinition, ToolMetadata, ToolResult

__all__ = [
    "ConfirmationGate",
    "ConfirmationRequest",
    "DestructiveClassification",
    "PendingConfirmation",
    "SearchResult",
    "ToolAdapter",
    "ToolCatalog",
    "ToolContext",
    "ToolDefinition",
    "ToolMetadata",
    "ToolResult",
    "create_confirm_action_tool",
    "guard_destructive_action",
]
