# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Runtime - composition root.

Builds the catalog, context, confirmation gate and workflow engine and wires
them together. Nothing else in the package creates these objects.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from orchestrator.core.config import Config, get_config
from orchestrator.core.logging import configure_logging, get_service_logger, log_event
from orchestrator.tools.confirm_action_tool import create_confirm_action_tool
from orchestrator.tools.confirmation import ConfirmationGate
from orchestrator.tools.context import ConnectorManager, SearchService, ToolContext
from orchestrator.tools.registry import ToolCatalog
from orchestrator.workflow.builtin import register_builtin_workflows
from orchestrator.workflow.engine import WorkflowEngine
from orchestrator.workflow.loader import register_workflows_from_dir

logger = get_service_logger("runtime")


@dataclass
class Runtime:
    """Wired orchestrator components"""
    config: Config
    catalog: ToolCatalog
    context: ToolContext
    gate: ConfirmationGate
    engine: WorkflowEngine


def register_core_tools(catalog: ToolCatalog, gate: ConfirmationGate) -> List[str]:
    """
    Register the tools this package provides itself.

    Idempotent: tools already in the catalog are skipped.
    Returns the names registered by this call.
    """
    registered = []
    for definition in (create_confirm_action_tool(gate),):
        if catalog.has(definition.name):
            continue
        catalog.register(definition)
        registered.append(definition.name)

    logger.info("Core tools registered", extra={"tools": registered, "tool_count": catalog.count()})
    return registered


def build_runtime(
    config: Optional[Config] = None,
    connector_manager: Optional[ConnectorManager] = None,
    search_service: Optional[SearchService] = None,
    connector_manager_factory: Optional[Callable[[], Any]] = None,
    search_service_factory: Optional[Callable[[], Any]] = None,
    register_builtins: bool = True,
) -> Runtime:
    """
    Construct and wire every component.

    Args:
        config: Configuration (defaults to the process config)
        connector_manager: Connector directory tools reach services through
        search_service: Cross-service search
        connector_manager_factory: Lazy alternative to connector_manager
        search_service_factory: Lazy alternative to search_service
        register_builtins: Register built-in workflows and load workflow files
    """
    config = config or get_config()
    configure_logging(config)

    catalog = ToolCatalog()
    gate = ConfirmationGate(ttl_seconds=config.confirmation_ttl_seconds)
    context = ToolContext(
        connector_manager=connector_manager,
        search_service=search_service,
        connector_manager_factory=connector_manager_factory,
        search_service_factory=search_service_factory,
        config=config,
    )
    engine = WorkflowEngine(catalog, config=config)

    register_core_tools(catalog, gate)
    if register_builtins:
        register_builtin_workflows(engine)
        register_workflows_from_dir(engine, config.get_workflows_dir())

    log_event(logger, "Runtime initialized", tool_count=catalog.count(), workflow_count=engine.count())
    return Runtime(config=config, catalog=catalog, context=context, gate=gate, engine=engine)


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_runtime: Optional[Runtime] = None


def get_runtime() -> Runtime:
    """Get or create the process runtime."""
    global _runtime
    if _runtime is None:
        _runtime = build_runtime()
    return _runtime


def reset_runtime() -> None:
    """Drop the process runtime (tests, config reload)."""
    global _runtime
    _runtime = None
