"""
Configuration data models for boardsync.

These models define the structure of .boardsync.json and
~/.config/boardsync/config.json files, with validation and type safety via
Pydantic.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RequestConfig(BaseModel):
    """
    Outbound request pipeline settings.

    Controls pacing of the request queue handler and the HTTP transport.
    """
    request_interval: float = Field(
        default=0.1,
        ge=0.0,
        description="Minimum seconds between two dispatched requests"
    )
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="HTTP timeout in seconds"
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Transport retries for transient failures (5xx, timeouts, network)"
    )
    queue_file: str = Field(
        default=".boardsync/queue.json",
        description="Where the CLI persists held requests (relative to the project dir)"
    )


class SyncConfig(BaseModel):
    """
    Entity synchronization behavior.

    Determines how long snapshots stay fresh and when local edits are sent.
    """
    item_duration: float = Field(
        default=60.0,
        gt=0.0,
        description="Seconds a snapshot stays fresh before a read refreshes it"
    )
    auto_refresh: bool = Field(
        default=True,
        description="Refresh expired snapshots on read (False: only first load and expire())"
    )
    auto_submit: bool = Field(
        default=True,
        description="Schedule a submit as soon as a field is written"
    )


class ServiceConfig(BaseModel):
    """
    Top-level boardsync configuration.

    Loaded from defaults, user config, project config and env vars.

    Example:
        >>> config = ServiceConfig(
        ...     app_key="0123456789abcdef",
        ...     sync=SyncConfig(item_duration=30),
        ... )
        >>> config.sync.item_duration
        30.0
    """
    base_url: str = Field(
        default="https://api.trello.com/1",
        description="Root URL of the remote REST API"
    )
    app_key: Optional[str] = Field(
        default=None,
        description="Application key sent with every request"
    )
    user_token: Optional[str] = Field(
        default=None,
        description="User token; without it the session is read-only"
    )
    serializer: str = Field(
        default="json",
        description="Name of the registered serializer used for payloads"
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Synchronization behavior"
    )
    requests: RequestConfig = Field(
        default_factory=RequestConfig,
        description="Request queue and transport settings"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,  # Validate on field assignment
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so endpoint paths can be appended."""
        return v.rstrip("/")

    @field_validator('app_key', 'user_token', mode='before')
    @classmethod
    def blank_to_none(cls, v: Union[str, None]) -> Union[str, None]:
        """Treat empty strings from env files as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def masked(self) -> dict[str, object]:
        """Dump the configuration with credentials shortened for display."""
        data = self.model_dump()
        for key in ("app_key", "user_token"):
            if data.get(key):
                data[key] = mask_secret(data[key])
        return data


def mask_secret(value: Optional[str]) -> Optional[str]:
    """Shorten a credential to its first four characters."""
    if not value:
        return value
    return f"{value[:4]}…" if len(value) > 4 else "…"
