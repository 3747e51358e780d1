# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool Contract

Pydantic models shared by every tool: the result envelope, the tool
definition, and the common parameter schemas tools reuse.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator


P = TypeVar("P", bound=BaseModel)
R = TypeVar("R")


# ============================================================================
# Result Envelope
# ============================================================================

class ToolMetadata(BaseModel):
    """Execution metadata attached to a tool result"""
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    execution_time: Optional[float] = Field(default=None, alias="executionTime")  # milliseconds
    service_id: Optional[str] = Field(default=None, alias="serviceId")
    service_type: Optional[str] = Field(default=None, alias="serviceType")


class ToolResult(BaseModel, Generic[R]):
    """
    Uniform result envelope returned by every tool.

    The envelope is the only channel a tool uses to report its outcome.
    A failed result never carries data; a successful one never carries an error.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool
    data: Optional[R] = None
    error: Optional[str] = None
    metadata: Optional[ToolMetadata] = None

    @model_validator(mode="after")
    def _check_envelope(self):
        if not self.success and self.data is not None:
            raise ValueError("A failed tool result cannot carry data")
        if self.success and self.error is not None:
            raise ValueError("A successful tool result cannot carry an error")
        return self

    @classmethod
    def ok(cls, data: Any = None, **metadata: Any) -> "ToolResult":
        """Build a successful result; keyword arguments become metadata."""
        return cls(success=True, data=data, metadata=ToolMetadata(**metadata) if metadata else None)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> "ToolResult":
        """Build a failed result; keyword arguments become metadata."""
        return cls(success=False, error=error, metadata=ToolMetadata(**metadata) if metadata else None)

    def with_execution_time(self, execution_time: float) -> "ToolResult":
        """Return a copy with executionTime set, unless the tool already set it."""
        if self.metadata is None:
            return self.model_copy(update={"metadata": ToolMetadata(execution_time=execution_time)})
        if self.metadata.execution_time is not None:
            return self
        return self.model_copy(
            update={"metadata": self.metadata.model_copy(update={"execution_time": execution_time})}
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON-serializable form sent back to the model."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# Tool Definition
# ============================================================================

@dataclass(frozen=True)
class ToolDefinition(Generic[P, R]):
    """
    A named, schema-validated, asynchronous operation.

    Immutable once registered; the catalog owns it afterwards.
    """
    name: str
    description: str
    parameter_schema: Type[P]
    execute: Callable[[P], Awaitable[ToolResult[R]]]

    def parse_arguments(self, arguments: Optional[Dict[str, Any]]) -> P:
        """Validate raw JSON arguments against the parameter schema."""
        return self.parameter_schema.model_validate(arguments or {})

    def input_schema(self) -> Dict[str, Any]:
        """JSON Schema for the parameters, as emitted to the model."""
        return self.parameter_schema.model_json_schema(by_alias=True)


# ============================================================================
# Common Parameter Schemas
# ============================================================================

ServiceType = Literal[
    "sonarr",
    "radarr",
    "lidarr",
    "jellyseerr",
    "jellyfin",
    "qbittorrent",
    "transmission",
    "deluge",
    "sabnzbd",
    "nzbget",
    "rtorrent",
    "prowlarr",
    "bazarr",
    "adguard",
    "homarr",
]

MediaType = Literal["series", "movie", "music", "request", "unknown"]

DATE_STRING_DESCRIPTION = (
    "Date in ISO format (YYYY-MM-DD) or relative expression "
    "(today, tomorrow, this week, next month)"
)


class DateRange(BaseModel):
    """Date range used by calendar and filtering operations"""
    model_config = ConfigDict(populate_by_name=True)

    start_date: Optional[str] = Field(default=None, alias="startDate", description=DATE_STRING_DESCRIPTION)
    end_date: Optional[str] = Field(default=None, alias="endDate", description=DATE_STRING_DESCRIPTION)


class Pagination(BaseModel):
    """Pagination parameters"""
    limit: int = Field(default=10, ge=1, le=100, description="Maximum number of results to return")
    offset: int = Field(default=0, ge=0, description="Number of results to skip")


class SearchResult(BaseModel):
    """A single cross-service search hit, as produced by the search service"""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    year: Optional[int] = None
    media_type: str = Field(default="unknown", alias="mediaType")
    service_name: str = Field(alias="serviceName")
    service_id: Optional[str] = Field(default=None, alias="serviceId")
    is_in_library: bool = Field(default=False, alias="isInLibrary")
    is_requested: bool = Field(default=False, alias="isRequested")
    is_available: bool = Field(default=False, alias="isAvailable")
    rating: Optional[float] = None
    overview: Optional[str] = None
