# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test helpers: throwaway tools and a controllable clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

from orchestrator.tools.types import ToolDefinition, ToolResult


class AnyParams(BaseModel):
    """Accepts any keyword arguments; tools read them via model_extra"""
    model_config = ConfigDict(extra="allow")


class FakeClock:
    """Manually advanced clock for TTL tests"""

    def __init__(self, start: datetime = datetime(2024, 6, 12, 10, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_tool(
    name: str,
    handler: Optional[Callable[[Dict[str, Any]], Awaitable[Any]]] = None,
    description: str = "Test tool",
) -> ToolDefinition:
    """
    Build a tool whose executor awaits handler(params_dict).

    Without a handler the tool echoes its params back as data.
    """

    async def execute(params: AnyParams) -> ToolResult:
        arguments = dict(params.model_extra or {})
        if handler is None:
            return ToolResult.ok(arguments)
        return await handler(arguments)

    return ToolDefinition(name=name, description=description, parameter_schema=AnyParams, execute=execute)
