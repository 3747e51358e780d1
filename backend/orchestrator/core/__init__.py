# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for the orchestrator.

This package contains:
- config: Configuration management
- errors: Custom exceptions and the tool error taxonomy
- logging: Structured logging
"""

from orchestrator.core.config import get_config, Config
from orchestrator.core.errors import (
    OrchestratorError,
    ToolAlreadyRegisteredError,
    ToolError,
    ToolErrorCategory,
)
from orchestrator.core.logging import configure_logging, get_logger

__all__ = [
    "get_config",
    "Config",
    "OrchestratorError",
    "ToolAlreadyRegisteredError",
    "ToolError",
    "ToolErrorCategory",
    "configure_logging",
    "get_logger",
]
