# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for the built-in workflows, run end-to-end against fake tools
"""

import pytest

from orchestrator.tools.types import ToolResult
from orchestrator.workflow.builtin import BUILTIN_WORKFLOWS, register_builtin_workflows
from orchestrator.workflow.models import Workflow, WorkflowStep
from tests.helpers import make_tool


@pytest.fixture
def calls():
    return []


@pytest.fixture
def media_tools(catalog, calls):
    """search_media / add_media fakes shaped like the real tools"""
    async def search_media(params):
        calls.append(("search_media", params))
        return ToolResult.ok({
            "results": [
                {"title": "Dune (2021)", "year": 2021, "mediaType": "movie", "serviceName": "TMDB"},
                {"title": "Dune (1984)", "year": 1984, "mediaType": "movie", "serviceName": "TMDB"},
            ],
            "total": 2,
        })

    async def add_media(params):
        calls.append(("add_media", params))
        return ToolResult.ok({"added": True, "title": params["title"]}, serviceType=params["serviceType"])

    catalog.register(make_tool("search_media", search_media))
    catalog.register(make_tool("add_media", add_media))


class TestRegistration:
    def test_all_builtins_register(self, engine):
        registered = register_builtin_workflows(engine)

        assert registered == [
            "search-and-add",
            "health-check-and-restart",
            "find-and-remove-duplicates",
            "bulk-add-from-list",
            "quality-upgrade",
        ]
        assert engine.count() == len(BUILTIN_WORKFLOWS)

    def test_registration_is_idempotent(self, engine):
        register_builtin_workflows(engine)

        assert register_builtin_workflows(engine) == []
        assert engine.count() == len(BUILTIN_WORKFLOWS)

    def test_existing_id_is_kept(self, engine):
        custom = Workflow(
            id="search-and-add",
            name="Custom search and add",
            steps=[WorkflowStep(id="only", tool_name="search_media")],
        )
        engine.register_workflow(custom)

        registered = register_builtin_workflows(engine)

        assert "search-and-add" not in registered
        assert engine.get_workflow("search-and-add") == custom

    def test_confirmation_flags(self):
        flags = {w.id: w.requires_confirmation for w in BUILTIN_WORKFLOWS}

        assert flags == {
            "search-and-add": False,
            "health-check-and-restart": False,
            "find-and-remove-duplicates": True,
            "bulk-add-from-list": True,
            "quality-upgrade": True,
        }


class TestSearchAndAdd:
    @pytest.mark.asyncio
    async def test_end_to_end(self, engine, media_tools, calls):
        """The add step's title is bound to the first search hit"""
        register_builtin_workflows(engine)
        progress = []

        result = await engine.execute_workflow(
            "search-and-add",
            {"query": "Dune", "serviceType": "radarr", "mediaType": "movie"},
            on_progress=lambda step_id, index, total, _: progress.append((step_id, index, total)),
        )

        assert result.success is True
        assert calls == [
            ("search_media", {"query": "Dune", "mediaType": "movie", "limit": 5}),
            ("add_media", {"title": "Dune (2021)", "serviceType": "radarr", "monitored": True}),
        ]
        assert progress == [("search", 0, 2), ("add", 1, 2)]

        add = result.step_results["add"]
        assert add["addResult"].data == {"added": True, "title": "Dune (2021)"}
        assert add["searchResult"] is result.step_results["search"]

    @pytest.mark.asyncio
    async def test_no_search_hits_fails_add_step(self, engine, catalog, calls):
        async def empty_search(params):
            return ToolResult.ok({"results": [], "total": 0})

        async def add_media(params):
            calls.append(("add_media", params))
            return ToolResult.ok({"added": True})

        catalog.register(make_tool("search_media", empty_search))
        catalog.register(make_tool("add_media", add_media))
        register_builtin_workflows(engine)

        result = await engine.execute_workflow(
            "search-and-add", {"query": "zzzz", "serviceType": "radarr", "mediaType": "movie"},
        )

        assert result.success is False
        assert result.failed_step_id == "add"
        assert "search.data.results[0].title" in result.error
        assert calls == []

    @pytest.mark.asyncio
    async def test_serializes_with_camel_case(self, engine, media_tools):
        register_builtin_workflows(engine)

        result = await engine.execute_workflow(
            "search-and-add", {"query": "Dune", "serviceType": "radarr", "mediaType": "movie"},
        )
        payload = result.model_dump(mode="json", by_alias=True)

        assert payload["success"] is True
        assert payload["stepResults"]["search"]["data"]["total"] == 2
        assert payload["stepStates"] == {"search": "completed", "add": "completed"}
        assert "executionTime" in payload


class TestBulkAddFromList:
    @pytest.mark.asyncio
    async def test_first_title_is_searched(self, engine, media_tools, calls):
        register_builtin_workflows(engine)

        result = await engine.execute_workflow(
            "bulk-add-from-list",
            {"titles": ["Dune", "Arrival"], "serviceType": "radarr", "mediaType": "movie"},
        )

        assert result.success is True
        assert calls[0] == ("search_media", {"query": "Dune", "mediaType": "movie", "limit": 1})
        assert calls[1][1]["title"] == "Dune (2021)"


class TestMaintenanceWorkflows:
    @pytest.mark.asyncio
    async def test_health_check_combines_results(self, engine, catalog):
        async def health(params):
            return ToolResult.ok({"healthy": ["radarr"], "unhealthy": ["sonarr"]})

        async def system_info(params):
            return ToolResult.ok({"diskSpace": "120 GB free", "serviceIds": params["serviceIds"]})

        catalog.register(make_tool("check_service_health", health))
        catalog.register(make_tool("get_system_info", system_info))
        register_builtin_workflows(engine)

        result = await engine.execute_workflow("health-check-and-restart", {"serviceIds": ["sonarr"]})

        assert result.success is True
        combined = result.step_results["system-info"]
        assert combined["systemInfo"].data["serviceIds"] == ["sonarr"]
        assert combined["healthCheck"].data["unhealthy"] == ["sonarr"]

    @pytest.mark.asyncio
    async def test_find_duplicates_reports_for_review(self, engine, catalog):
        async def downloads(params):
            return ToolResult.ok({"downloads": [{"name": "Dune.2021.2160p"}]})

        catalog.register(make_tool("manage_downloads", downloads))
        register_builtin_workflows(engine)

        result = await engine.execute_workflow("find-and-remove-duplicates", {"serviceType": "qbittorrent"})

        analysis = result.step_results["analyze-duplicates"]
        assert analysis["duplicatesFound"] == 0
        assert analysis["downloads"] is result.step_results["list-downloads"]
        assert "manual review" in analysis["message"]

    @pytest.mark.asyncio
    async def test_quality_upgrade_without_limit(self, engine, catalog):
        seen = {}

        async def library(params):
            seen.update(params)
            return ToolResult.ok({"items": []})

        catalog.register(make_tool("get_media_library", library))
        catalog.register(make_tool("get_system_info"))
        register_builtin_workflows(engine)

        result = await engine.execute_workflow("quality-upgrade", {"serviceType": "radarr"})

        assert result.success is True
        assert seen == {"serviceType": "radarr", "limit": None, "sortBy": "added"}
        assert "disk space" in result.step_results["check-system"]["message"]
