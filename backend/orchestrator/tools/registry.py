# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool Catalog

Registry mapping tool name -> ToolDefinition, plus the adapters that expose
registered tools to an LLM tool-calling protocol.
"""

import threading
import time
from typing import Any, Dict, Iterable, List, Optional

from orchestrator.core.errors import ToolAlreadyRegisteredError
from orchestrator.core.logging import get_service_logger
from orchestrator.tools.types import ToolDefinition, ToolResult

logger = get_service_logger("catalog")


class ToolAdapter:
    """
    Protocol boundary for a single tool.

    Calling the adapter validates raw arguments, runs the tool and always
    returns an envelope dict. Exceptions never escape this boundary.
    """

    def __init__(self, definition: ToolDefinition):
        self.definition = definition

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.definition.input_schema()

    async def __call__(self, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        result = await self.invoke(arguments)
        return result.to_payload()

    async def invoke(self, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Run the tool and return the envelope as a model."""
        start = time.perf_counter()
        try:
            params = self.definition.parse_arguments(arguments)
            result = await self.definition.execute(params)
            if not isinstance(result, ToolResult):
                # Tools returning plain dicts still get a validated envelope
                result = ToolResult.model_validate(result)
        except Exception as e:
            logger.error(
                "Tool execution failed with unhandled error",
                extra={"tool_name": self.name, "error": str(e)},
            )
            result = ToolResult.fail(str(e) or "An unexpected error occurred", toolName=self.name)

        execution_time = round((time.perf_counter() - start) * 1000, 2)
        return result.with_execution_time(execution_time)

    def to_anthropic_tool(self) -> Dict[str, Any]:
        """Anthropic tool format"""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def to_openai_tool(self) -> Dict[str, Any]:
        """OpenAI function-calling format"""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            }
        }


class ToolCatalog:
    """
    Central registry for tool definitions.

    Responsibilities:
    - Tool registration and lifecycle management
    - Duplicate name validation
    - Conversion to the external invocation format
    """

    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}
        self._lock = threading.Lock()

    def register(self, definition: ToolDefinition) -> None:
        """
        Register a tool definition.

        Raises:
            ToolAlreadyRegisteredError: If a tool with the same name exists
        """
        with self._lock:
            if definition.name in self._tools:
                error = ToolAlreadyRegisteredError(definition.name)
                logger.error(
                    "Failed to register tool: duplicate name",
                    extra={"tool_name": definition.name, "error": error.message},
                )
                raise error
            self._tools[definition.name] = definition

        logger.debug("Tool registered", extra={"tool_name": definition.name})

    def unregister(self, name: str) -> None:
        """Remove a tool. Does nothing if it isn't registered."""
        with self._lock:
            self._tools.pop(name, None)

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def get_all(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def get_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def has(self, name: str) -> bool:
        return name in self._tools

    def count(self) -> int:
        return len(self._tools)

    def clear(self) -> None:
        with self._lock:
            self._tools.clear()

    def to_external_format(self, selected: Optional[Iterable[str]] = None) -> Dict[str, ToolAdapter]:
        """
        Build an adapter for every registered tool.

        Args:
            selected: Optional tool names to expose; others are left out.
                Unknown names are ignored.

        Returns:
            Mapping of tool name -> ToolAdapter
        """
        wanted = set(selected) if selected is not None else None
        adapters = {}

        for name, definition in list(self._tools.items()):
            if wanted is not None and name not in wanted:
                continue
            adapters[name] = ToolAdapter(definition)

        if wanted is not None:
            logger.debug(
                "Tools filtered based on selection",
                extra={"available_tools": self.get_tool_names(), "active_tools": list(adapters)},
            )

        return adapters
