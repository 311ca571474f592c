"""
HTTP transport backed by httpx.

Authenticates every request with the application key and (optional) user
token as query parameters, retries transient failures with exponential
backoff and maps failures onto the boardsync error taxonomy:

- 404, and 400 "invalid id" -> NotFoundError
- timeouts and network errors -> TransportConnectionError
- any other non-2xx status -> TransportError
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from boardsync.core.exceptions import NotFoundError, TransportConnectionError, TransportError
from boardsync.core.serialization import JsonSerializer, Serializer
from boardsync.core.transport.base import TransportRequest
from boardsync.core.transport.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value)
    return str(value)


class HttpTransport:
    """
    Transport executing requests with an ``httpx.Client``.

    Example:
        >>> transport = HttpTransport("https://api.trello.com/1", app_key="...", user_token="...")
        >>> transport.execute(TransportRequest(RequestMethod.GET, "members/me"))
        {'id': '...', 'username': '...'}
    """

    def __init__(
        self,
        base_url: str,
        app_key: str | None = None,
        user_token: str | None = None,
        *,
        serializer: Serializer | None = None,
        timeout: float = 30.0,
        retry: RetryConfig | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        user_agent: str | None = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            base_url: API root, e.g. https://api.trello.com/1
            app_key: Application key
            user_token: User token (None for read-only sessions)
            serializer: Payload serializer (defaults to JSON)
            timeout: Request timeout in seconds
            retry: Retry configuration (defaults to RetryConfig())
            client: Pre-built httpx client (tests pass one with a MockTransport)
            sleep: Sleep function used between retries
            user_agent: Value for the User-Agent header
        """
        self.base_url = base_url.rstrip("/")
        self._app_key = app_key
        self._user_token = user_token
        self._serializer = serializer or JsonSerializer()
        self._retry = retry or RetryConfig()
        self._sleep = sleep
        self._owns_client = client is None
        headers = {"Accept": "application/json"}
        if user_agent:
            headers["User-Agent"] = user_agent
        self._client = client or httpx.Client(timeout=timeout, headers=headers)

    def set_credentials(self, app_key: str | None, user_token: str | None) -> None:
        """Update the credentials attached to subsequent requests."""
        self._app_key = app_key
        self._user_token = user_token

    def execute(self, request: TransportRequest) -> Any:
        """
        Execute a prepared request.

        Returns:
            Deserialized payload, or None for an empty body

        Raises:
            NotFoundError: If the remote object does not exist
            TransportConnectionError: If the service cannot be reached
            TransportError: For other HTTP failures
        """
        url = f"{self.base_url}/{request.path}"
        params = {k: _format_param(v) for k, v in request.params.items() if v is not None}
        if self._app_key:
            params["key"] = self._app_key
        if self._user_token:
            params["token"] = self._user_token

        headers = {}
        if request.body is not None:
            headers["Content-Type"] = "application/json"

        @with_retry(self._retry, sleep=self._sleep)
        def _send() -> httpx.Response:
            response = self._client.request(
                request.method.value,
                url,
                params=params,
                content=request.body,
                headers=headers,
            )
            response.raise_for_status()
            return response

        logger.debug("%s %s", request.method.value, request.path)

        try:
            response = _send()
        except httpx.HTTPStatusError as e:
            raise self._status_error(request, e.response) from e
        except httpx.TimeoutException as e:
            raise TransportConnectionError(
                f"Timed out calling {request.method.value} {request.path}",
                path=request.path,
            ) from e
        except httpx.RequestError as e:
            raise TransportConnectionError(
                f"Cannot reach {self.base_url}: {e}",
                path=request.path,
            ) from e

        return self._serializer.deserialize(response.text)

    @staticmethod
    def _status_error(request: TransportRequest, response: httpx.Response) -> TransportError:
        status = response.status_code
        detail = response.text.strip()[:200]
        if status == 404 or (status == 400 and "invalid id" in detail.lower()):
            return NotFoundError(
                f"{request.path} was not found",
                path=request.path,
            )
        return TransportError(
            f"{request.method.value} {request.path} failed with HTTP {status}: {detail}",
            status_code=status,
            path=request.path,
        )

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self._client.close()

    def __repr__(self) -> str:
        return f"HttpTransport({self.base_url!r})"
