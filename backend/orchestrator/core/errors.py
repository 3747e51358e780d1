# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for the orchestration core.

All exceptions inherit from OrchestratorError for consistent error handling.
Tool implementations raise ToolError; its category drives the user-facing
hint but never control flow.
"""

import re
from enum import Enum
from typing import Optional, Any


class ToolErrorCategory(str, Enum):
    """Error categories for tool execution failures."""

    SERVICE_NOT_CONFIGURED = "SERVICE_NOT_CONFIGURED"
    AUTH_FAILED = "AUTH_FAILED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    OPERATION_FAILED = "OPERATION_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


DEFAULT_HINTS = {
    ToolErrorCategory.SERVICE_NOT_CONFIGURED: "Please configure the required service in Settings > Services.",
    ToolErrorCategory.AUTH_FAILED: "Please check your API key and credentials in Settings > Services.",
    ToolErrorCategory.SERVICE_UNAVAILABLE: "Please check your network connection and ensure the service is running.",
    ToolErrorCategory.INVALID_PARAMETERS: "Please check the parameters and try again.",
    ToolErrorCategory.NETWORK_ERROR: "Please check your network connection. If you're using a VPN, try disconnecting it.",
    ToolErrorCategory.RATE_LIMIT_EXCEEDED: "Please wait a moment and try again.",
    ToolErrorCategory.OPERATION_FAILED: "Please try again or contact support if the issue persists.",
}


class OrchestratorError(Exception):
    """Base exception for all orchestrator errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        """
        Initialize orchestrator error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details if details is not None else {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to a JSON-safe dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ToolError(OrchestratorError):
    """
    Structured tool failure with an actionable hint.

    Rendered to users as ``message + " " + actionable_hint``.
    """

    def __init__(
        self,
        message: str,
        category: ToolErrorCategory = ToolErrorCategory.OPERATION_FAILED,
        actionable_hint: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        """
        Initialize tool error.

        Args:
            message: What went wrong
            category: Error category from the taxonomy
            actionable_hint: What the user can do about it (category default if omitted)
            details: Opaque diagnostic payload
        """
        super().__init__(message, details=details)
        self.category = ToolErrorCategory(category)
        self.actionable_hint = actionable_hint or DEFAULT_HINTS[self.category]

    def to_user_message(self) -> str:
        """Convert the error to a user-friendly message."""
        return f"{self.message} {self.actionable_hint}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["category"] = self.category.value
        data["actionable_hint"] = self.actionable_hint
        return data


class ToolAlreadyRegisteredError(OrchestratorError):
    """A tool with the same name is already in the catalog."""

    def __init__(self, tool_name: str):
        super().__init__(
            f'Tool with name "{tool_name}" is already registered. Each tool must have a unique name.',
            details={"tool_name": tool_name},
        )
        self.tool_name = tool_name


# Error Message Utilities

# Absolute filesystem paths; URLs are left alone
_PATH_PREFIX = re.compile(r"(?<![\w:/.])(?:/[\w.-]+)+/")


def sanitize_error_for_user(error: BaseException, include_type: bool = True, max_length: int = 500) -> str:
    """
    Reduce an unexpected exception to one line that is safe to show users.

    Keeps only the first line of the message, strips directory prefixes from
    absolute paths (``/srv/app/config.yaml`` -> ``config.yaml``) and caps the
    length.
    """
    message = _PATH_PREFIX.sub("", str(error).strip().split("\n")[0])
    if len(message) > max_length:
        message = message[:max_length] + "..."

    return f"{type(error).__name__}: {message}" if include_type else message
