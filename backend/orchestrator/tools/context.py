# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool Execution Context

Shared collaborators and helpers for tool implementations: connector and
search access, relative-date parsing, result/error formatting, error
factories and the destructive-action table.
"""

from dataclasses import dataclass
from datetime import datetime, time as dt_time, timedelta
from typing import (
    Any, Awaitable, Callable, Iterable, List, Literal, Mapping, Optional,
    Protocol, Sequence, Union,
)

from orchestrator.core.config import Config, get_config
from orchestrator.core.errors import ToolError, ToolErrorCategory, sanitize_error_for_user
from orchestrator.core.logging import get_service_logger
from orchestrator.tools.types import SearchResult

logger = get_service_logger("context")

Severity = Literal["low", "medium", "high"]

RELATIVE_DATE_HINT = (
    'Please provide a valid date in ISO format (YYYY-MM-DD) or use relative expressions '
    'like "today", "tomorrow", "this week", "next month".'
)

# Accepted after ISO 8601 fails
_FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
)


class ConnectorManager(Protocol):
    """Directory of configured service connectors (HTTP clients live elsewhere)."""

    def get_connector(self, connector_id: str) -> Optional[Any]: ...

    def get_connectors_by_type(self, service_type: str) -> List[Any]: ...

    def get_all_connectors(self) -> List[Any]: ...


class SearchService(Protocol):
    """Cross-service media search."""

    async def search(self, query: str, **options: Any) -> List[Any]: ...


@dataclass(frozen=True)
class DestructivePattern:
    tool_name: str
    severity: Severity
    param_check: Optional[Callable[[Mapping[str, Any]], bool]] = None

    def matches(self, tool_name: str, params: Mapping[str, Any]) -> bool:
        if tool_name != self.tool_name:
            return False
        # No param check means the tool is always destructive
        return self.param_check is None or bool(self.param_check(params))


@dataclass(frozen=True)
class DestructiveClassification:
    severity: Severity
    is_destructive: bool = True


def _action_in(*actions: str) -> Callable[[Mapping[str, Any]], bool]:
    return lambda params: params.get("action") in actions


DESTRUCTIVE_PATTERNS = (
    DestructivePattern("manage_downloads", "medium", _action_in("remove")),
    DestructivePattern("manage_media", "high", _action_in("delete", "unmonitor")),
    DestructivePattern("bulk_remove_downloads", "high"),
    DestructivePattern("bulk_delete_media", "high"),
    DestructivePattern("control_service", "low", _action_in("restart", "shutdown")),
    DestructivePattern("delete_files", "high"),
    DestructivePattern("manage_queue", "medium", _action_in("clear", "remove")),
)


def _start_of_day(value: Union[datetime, Any]) -> datetime:
    return datetime.combine(value.date() if isinstance(value, datetime) else value, dt_time.min)


def _connector_label(connector: Any) -> str:
    config = getattr(connector, "config", None)
    return str(getattr(config, "id", None) or getattr(connector, "id", None) or repr(connector))


class ToolContext:
    """
    Shared context handed to tool implementations.

    The connector directory and search service are external collaborators.
    Either pass instances, or factories that are invoked on first use.
    """

    def __init__(
        self,
        connector_manager: Optional[ConnectorManager] = None,
        search_service: Optional[SearchService] = None,
        connector_manager_factory: Optional[Callable[[], ConnectorManager]] = None,
        search_service_factory: Optional[Callable[[], SearchService]] = None,
        config: Optional[Config] = None,
    ):
        self._connector_manager = connector_manager
        self._search_service = search_service
        self._connector_manager_factory = connector_manager_factory
        self._search_service_factory = search_service_factory
        self.config = config or get_config()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def get_connector_manager(self) -> ConnectorManager:
        if self._connector_manager is None:
            if self._connector_manager_factory is None:
                raise ToolError(
                    "Connector directory is not available",
                    ToolErrorCategory.SERVICE_NOT_CONFIGURED,
                    "Please add a service in Settings > Services to use this feature.",
                )
            self._connector_manager = self._connector_manager_factory()
        return self._connector_manager

    def get_search_service(self) -> SearchService:
        if self._search_service is None:
            if self._search_service_factory is None:
                raise ToolError(
                    "Search service is not available",
                    ToolErrorCategory.SERVICE_NOT_CONFIGURED,
                    "Please add a searchable service in Settings > Services to use this feature.",
                )
            self._search_service = self._search_service_factory()
        return self._search_service

    async def collect_from_connectors(
        self,
        connectors: Iterable[Any],
        fetch: Callable[[Any], Awaitable[Sequence[Any]]],
    ) -> List[Any]:
        """
        Fan out `fetch` over connectors and concatenate the results.

        A connector that fails is logged and skipped so one unreachable
        service doesn't hide the others.
        """
        collected: List[Any] = []
        for connector in connectors:
            try:
                collected.extend(await fetch(connector))
            except Exception as e:
                logger.warning(
                    "Connector fetch failed, skipping",
                    extra={"connector": _connector_label(connector), "error": str(e)},
                )
        return collected

    # ------------------------------------------------------------------
    # Dates
    # ------------------------------------------------------------------

    def parse_relative_date(self, date_str: str, now: Optional[datetime] = None) -> datetime:
        """
        Parse a relative date expression or a concrete date into start-of-day.

        Weeks start on Sunday; months and years start on the 1st.

        Raises:
            ToolError: INVALID_PARAMETERS if the string is not a date
        """
        normalized = (date_str or "").strip().lower()
        now = now or datetime.now()
        today = _start_of_day(now)
        # Python weekday(): Monday=0 ... Sunday=6
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)

        if normalized == "today":
            return today
        if normalized == "tomorrow":
            return today + timedelta(days=1)
        if normalized == "yesterday":
            return today - timedelta(days=1)
        if normalized == "this week":
            return week_start
        if normalized == "next week":
            return week_start + timedelta(days=7)
        if normalized == "this month":
            return today.replace(day=1)
        if normalized == "next month":
            if today.month == 12:
                return today.replace(year=today.year + 1, month=1, day=1)
            return today.replace(month=today.month + 1, day=1)
        if normalized == "this year":
            return today.replace(month=1, day=1)
        if normalized == "next year":
            return today.replace(year=today.year + 1, month=1, day=1)

        parsed = self._parse_absolute_date((date_str or "").strip())
        if parsed is None:
            raise ToolError(
                f'Invalid date string: "{date_str}"',
                ToolErrorCategory.INVALID_PARAMETERS,
                RELATIVE_DATE_HINT,
                {"provided_date": date_str},
            )
        return _start_of_day(parsed)

    @staticmethod
    def _parse_absolute_date(value: str) -> Optional[datetime]:
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
        for fmt in _FALLBACK_DATE_FORMATS:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue
        return None

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def format_result(self, result: Union[SearchResult, Mapping[str, Any]]) -> str:
        """
        Format a search hit into one LLM-friendly entry.

        Example:
            Dune (2021) [movie] via Radarr (in library) Rating: 8.0/10
              Paul Atreides, a brilliant and gifted young man...
        """
        if not isinstance(result, SearchResult):
            result = SearchResult.model_validate(result)

        parts = [f"{result.title} ({result.year})" if result.year else result.title]
        parts.append(f"[{result.media_type}]")
        parts.append(f"via {result.service_name}")

        if result.is_in_library:
            parts.append("(in library)")
        elif result.is_requested:
            parts.append("(requested)")
        elif result.is_available:
            parts.append("(available)")

        if result.rating is not None:
            parts.append(f"Rating: {result.rating:.1f}/10")

        formatted = " ".join(parts)

        if result.overview:
            limit = self.config.overview_max_length
            overview = result.overview
            if len(overview) > limit:
                overview = f"{overview[:limit]}..."
            formatted += f"\n  {overview}"

        return formatted

    def format_results(
        self,
        results: Sequence[Union[SearchResult, Mapping[str, Any]]],
        max_results: Optional[int] = None,
    ) -> str:
        """Format search hits as a numbered list, noting how many were left out."""
        if not results:
            return "No results found."

        max_results = max_results if max_results is not None else self.config.format_max_results
        entries = []
        for index, result in enumerate(results[:max_results]):
            lines = self.format_result(result).split("\n")
            lines[0] = f"{index + 1}. {lines[0]}"
            entries.append("\n".join(lines))

        formatted = "\n\n".join(entries)
        if len(results) > max_results:
            return f"{formatted}\n\n... and {len(results) - max_results} more results"
        return formatted

    def format_error(self, error: Any) -> str:
        """Render any error for users; stack traces never leak."""
        if isinstance(error, ToolError):
            return error.to_user_message()

        if isinstance(error, BaseException):
            return f"An error occurred: {sanitize_error_for_user(error, include_type=False)}"

        return "An unexpected error occurred. Please try again."

    # ------------------------------------------------------------------
    # Error factories
    # ------------------------------------------------------------------

    def service_not_configured(self, service_type: str) -> ToolError:
        return ToolError(
            f"{service_type} service is not configured",
            ToolErrorCategory.SERVICE_NOT_CONFIGURED,
            f"Please add a {service_type} service in Settings > Services to use this feature.",
            {"service_type": service_type},
        )

    def auth_failed(self, service_type: str, service_name: str) -> ToolError:
        return ToolError(
            f"Authentication failed for {service_name}",
            ToolErrorCategory.AUTH_FAILED,
            f"Please check the API key and credentials for {service_name} in Settings > Services.",
            {"service_type": service_type, "service_name": service_name},
        )

    def service_unavailable(
        self,
        service_type: str,
        service_name: str,
        details: Optional[str] = None,
    ) -> ToolError:
        message = f"{service_name} is unavailable: {details}" if details else f"{service_name} is unavailable"
        return ToolError(
            message,
            ToolErrorCategory.SERVICE_UNAVAILABLE,
            "Please check your network connection and ensure the service is running. "
            "If you're using a VPN, try disconnecting it.",
            {"service_type": service_type, "service_name": service_name, "details": details},
        )

    # ------------------------------------------------------------------
    # Destructive actions
    # ------------------------------------------------------------------

    def classify_destructive(
        self,
        tool_name: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Optional[DestructiveClassification]:
        """
        Look up (tool, params) in the destructive-action table.

        Returns:
            The classification with its severity, or None when the call is safe
        """
        params = params or {}
        for pattern in DESTRUCTIVE_PATTERNS:
            if pattern.matches(tool_name, params):
                return DestructiveClassification(severity=pattern.severity)
        return None
