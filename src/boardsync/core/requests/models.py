"""
Data models for the outbound request pipeline.

Endpoints are plain frozen dataclasses built by the endpoint factory;
persisted requests are Pydantic models so an embedding application can
store unsent work as JSON and restore it after a restart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RequestMethod(str, Enum):
    """HTTP verb of a queued request."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def is_write(self) -> bool:
        """True for methods that mutate remote state."""
        return self is not RequestMethod.GET


class RequestState(str, Enum):
    """Lifecycle of a queued request: queued -> dispatched -> completed | failed."""

    QUEUED = "queued"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Endpoint:
    """
    A resolved remote endpoint.

    Attributes:
        method: HTTP verb
        segments: Path segments relative to the API root
        params: Query parameters
    """

    method: RequestMethod
    segments: tuple[str, ...]
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        """Path relative to the API root, e.g. ``cards/5f0c...``."""
        return "/".join(self.segments)

    def __str__(self) -> str:
        return f"{self.method.value} {self.path}"


class PersistedRequest(BaseModel):
    """
    Serializable form of an unsent request.

    Produced by ``BoardService.get_unsent_requests()`` and consumed by
    ``BoardService.restore_requests()``.

    Example:
        >>> req = PersistedRequest(
        ...     endpoint="cards/5f0c0a0b0c0d0e0f10111213",
        ...     method=RequestMethod.PUT,
        ...     body={"name": "Ship it"},
        ...     result_type="card",
        ... )
        >>> req.model_dump_json()
    """

    endpoint: str = Field(description="Path relative to the API root")
    method: RequestMethod = Field(default=RequestMethod.GET, description="HTTP verb")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Query parameters",
    )
    body: dict[str, Any] | None = Field(
        default=None,
        description="Payload to submit for write requests",
    )
    result_type: str | None = Field(
        default=None,
        description="Entity kind the response is applied to (e.g. 'card')",
    )
    many: bool = Field(
        default=False,
        description="Whether the response is a list of entities",
    )

    def to_endpoint(self) -> Endpoint:
        """Rebuild the endpoint descriptor."""
        segments = tuple(s for s in self.endpoint.split("/") if s)
        return Endpoint(self.method, segments, dict(self.parameters))
