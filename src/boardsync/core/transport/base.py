"""
Transport protocol.

The synchronization core never talks HTTP directly: queued requests are
prepared into ``TransportRequest`` objects and handed to whatever object
implements ``Transport``. ``HttpTransport`` is the production
implementation; tests substitute in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from boardsync.core.requests.models import Endpoint, RequestMethod


@dataclass(frozen=True)
class TransportRequest:
    """
    A fully prepared request, ready to be executed.

    Attributes:
        method: HTTP verb
        path: Path relative to the API root
        params: Query parameters
        body: Serialized payload (None for reads and deletes)
    """

    method: RequestMethod
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    body: str | None = None

    @classmethod
    def from_endpoint(cls, endpoint: Endpoint, body: str | None = None) -> TransportRequest:
        return cls(endpoint.method, endpoint.path, dict(endpoint.params), body)


@runtime_checkable
class Transport(Protocol):
    """
    Protocol for transport implementations.

    Transports are responsible for:
    - Executing a prepared request against the remote service
    - Authenticating the request
    - Mapping failures onto the boardsync error taxonomy
      (NotFoundError, TransportConnectionError, TransportError)
    """

    def execute(self, request: TransportRequest) -> Any:
        """
        Execute a request and return the deserialized payload.

        Args:
            request: Prepared request

        Returns:
            Deserialized payload (dict, list or None for empty bodies)

        Raises:
            NotFoundError: If the remote object does not exist
            TransportConnectionError: If the service cannot be reached
            TransportError: For any other HTTP failure
        """
        ...

    def set_credentials(self, app_key: str | None, user_token: str | None) -> None:
        """Update the credentials attached to subsequent requests."""
        ...
