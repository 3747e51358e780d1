# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared fixtures: catalog, gate with a controllable clock, context with
mocked collaborators, and a workflow engine bound to the catalog.
"""

import os
import sys

import pytest
from unittest.mock import AsyncMock, MagicMock

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from orchestrator.core.config import Config
from orchestrator.tools.confirmation import ConfirmationGate
from orchestrator.tools.context import ToolContext
from orchestrator.tools.registry import ToolCatalog
from orchestrator.workflow.engine import WorkflowEngine
from tests.helpers import FakeClock


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def catalog():
    return ToolCatalog()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gate(clock):
    return ConfirmationGate(ttl_seconds=300, clock=clock)


@pytest.fixture
def mock_connector_manager():
    """Mock connector directory"""
    manager = MagicMock()
    manager.get_connector = MagicMock(return_value=None)
    manager.get_connectors_by_type = MagicMock(return_value=[])
    manager.get_all_connectors = MagicMock(return_value=[])
    return manager


@pytest.fixture
def mock_search_service():
    """Mock cross-service search"""
    service = MagicMock()
    service.search = AsyncMock(return_value=[])
    return service


@pytest.fixture
def context(config, mock_connector_manager, mock_search_service):
    return ToolContext(
        connector_manager=mock_connector_manager,
        search_service=mock_search_service,
        config=config,
    )


@pytest.fixture
def engine(catalog, config):
    return WorkflowEngine(catalog, config=config)
