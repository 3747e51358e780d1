# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Built-in Workflows

Pre-configured multi-step operations for the media-server tool set.
The tools they name (search_media, add_media, ...) are registered by the
host; a missing tool only fails the step that uses it.
"""

from typing import Any, List, Mapping

from orchestrator.core.logging import get_service_logger
from orchestrator.workflow.models import Workflow, WorkflowStep

logger = get_service_logger("workflow.builtin")


def _with_search_result(result: Any, previous: Mapping[str, Any]) -> Any:
    return {"addResult": result, "searchResult": previous.get("search")}


def _with_health_check(result: Any, previous: Mapping[str, Any]) -> Any:
    return {"systemInfo": result, "healthCheck": previous.get("health-check")}


def _downloads_for_review(result: Any, previous: Mapping[str, Any]) -> Any:
    # Duplicate detection is left to the user for now
    return {
        "downloads": previous.get("list-downloads"),
        "duplicatesFound": 0,
        "message": "Duplicate detection requires manual review. Please check the download list for similar titles.",
    }


def _library_with_system_info(result: Any, previous: Mapping[str, Any]) -> Any:
    return {
        "systemInfo": result,
        "library": previous.get("get-library"),
        "message": (
            "Quality upgrade workflow requires manual review. "
            "Please check available disk space before proceeding."
        ),
    }


SEARCH_AND_ADD = Workflow(
    id="search-and-add",
    name="Search and Add Media",
    description="Search for media across services and add the best match to a specified service",
    requires_confirmation=False,
    tags=["media", "search", "add"],
    steps=[
        WorkflowStep(
            id="search",
            tool_name="search_media",
            description="Search for media across all services",
            params={"query": "{{query}}", "mediaType": "{{mediaType}}", "limit": 5},
        ),
        WorkflowStep(
            id="add",
            tool_name="add_media",
            description="Add the first search result to the service",
            params={
                "title": "{{search.data.results[0].title}}",
                "serviceType": "{{serviceType}}",
                "monitored": True,
            },
            depends_on=["search"],
            transform_result=_with_search_result,
        ),
    ],
)

HEALTH_CHECK_AND_RESTART = Workflow(
    id="health-check-and-restart",
    name="Health Check and Restart",
    description="Check service health and provide recommendations for unhealthy services",
    requires_confirmation=False,
    tags=["health", "diagnostics", "maintenance"],
    steps=[
        WorkflowStep(
            id="health-check",
            tool_name="check_service_health",
            description="Check health status of all services",
            params={"serviceIds": "{{serviceIds}}", "includeMetrics": True},
        ),
        WorkflowStep(
            id="system-info",
            tool_name="get_system_info",
            description="Get system information for unhealthy services",
            params={"serviceIds": "{{serviceIds}}", "includeVersions": True, "includeDiskSpace": True},
            depends_on=["health-check"],
            transform_result=_with_health_check,
        ),
    ],
)

FIND_AND_REMOVE_DUPLICATES = Workflow(
    id="find-and-remove-duplicates",
    name="Find and Remove Duplicate Downloads",
    description="Identify and remove duplicate downloads from the download queue",
    requires_confirmation=True,
    tags=["downloads", "cleanup", "duplicates"],
    steps=[
        WorkflowStep(
            id="list-downloads",
            tool_name="manage_downloads",
            description="List all active downloads",
            params={"action": "list", "serviceType": "{{serviceType}}"},
        ),
        WorkflowStep(
            id="analyze-duplicates",
            tool_name="manage_downloads",
            description="Get detailed information about downloads",
            params={"action": "list", "serviceType": "{{serviceType}}"},
            depends_on=["list-downloads"],
            transform_result=_downloads_for_review,
        ),
    ],
)

BULK_ADD_FROM_LIST = Workflow(
    id="bulk-add-from-list",
    name="Bulk Add Media from List",
    description="Add multiple media items from a list of titles",
    requires_confirmation=True,
    tags=["media", "bulk", "add"],
    steps=[
        WorkflowStep(
            id="search-first",
            tool_name="search_media",
            description="Search for the first media item",
            params={"query": "{{titles[0]}}", "mediaType": "{{mediaType}}", "limit": 1},
        ),
        WorkflowStep(
            id="add-first",
            tool_name="add_media",
            description="Add the first media item",
            params={
                "title": "{{search-first.data.results[0].title}}",
                "serviceType": "{{serviceType}}",
                "monitored": True,
            },
            depends_on=["search-first"],
        ),
    ],
)

QUALITY_UPGRADE = Workflow(
    id="quality-upgrade",
    name="Quality Upgrade Search",
    description="Find and request quality upgrades for media in your library",
    requires_confirmation=True,
    tags=["media", "quality", "upgrade"],
    steps=[
        WorkflowStep(
            id="get-library",
            tool_name="get_media_library",
            description="Get media library items",
            params={"serviceType": "{{serviceType}}", "limit": "{{limit}}", "sortBy": "added"},
        ),
        WorkflowStep(
            id="check-system",
            tool_name="get_system_info",
            description="Check system resources before upgrading",
            params={"serviceIds": [], "includeVersions": False, "includeDiskSpace": True},
            depends_on=["get-library"],
            transform_result=_library_with_system_info,
        ),
    ],
)

BUILTIN_WORKFLOWS: List[Workflow] = [
    SEARCH_AND_ADD,
    HEALTH_CHECK_AND_RESTART,
    FIND_AND_REMOVE_DUPLICATES,
    BULK_ADD_FROM_LIST,
    QUALITY_UPGRADE,
]


def register_builtin_workflows(engine) -> List[str]:
    """
    Register the built-in workflows, skipping ids already taken.

    Returns:
        Ids of the workflows registered by this call
    """
    registered = []
    for workflow in BUILTIN_WORKFLOWS:
        if engine.has_workflow(workflow.id):
            logger.debug("Built-in workflow already registered", extra={"workflow_id": workflow.id})
            continue
        engine.register_workflow(workflow)
        registered.append(workflow.id)

    logger.info("Built-in workflows registered", extra={"workflow_ids": registered})
    return registered
