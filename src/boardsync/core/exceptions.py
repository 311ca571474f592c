"""
Exceptions for boardsync.

This module defines the error taxonomy shared by the synchronization core,
the transport and the CLI. Every error carries a human-readable message plus
optional keyword context for debugging.

Exception Hierarchy:
    BoardSyncError (base)
    ├── FieldValidationError (a field rule rejected a write)
    ├── ReadOnlyAccessError (mutation attempted without a user token)
    ├── NotFoundError (the remote object does not exist)
    ├── TransportError (HTTP-level failures)
    │   └── TransportConnectionError (network-level failures)
    ├── SerializationError (payload could not be encoded/decoded)
    └── ConfigError (invalid configuration)

Example:
    >>> from boardsync.core.exceptions import FieldValidationError
    >>> try:
    ...     card.name = ""
    ... except FieldValidationError as e:
    ...     print(f"{e.field}: {e}")
"""


class BoardSyncError(Exception):
    """
    Base exception for all boardsync errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        """
        Initialize an error with message and context.

        Args:
            message: Human-readable error message
            **context: Additional context as keyword arguments
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class FieldValidationError(BoardSyncError):
    """
    Raised when a validation rule rejects a field write.

    The write never reaches the snapshot and the field is not marked dirty.

    Attributes:
        field: Name of the property being written
        value: The rejected value
        rule: Name of the rule that rejected it
    """

    def __init__(self, field: str, value: object, rule: str, message: str) -> None:
        super().__init__(message, field=field, value=value, rule=rule)
        self.field = field
        self.value = value
        self.rule = rule

    def __str__(self) -> str:
        return f"Invalid value for '{self.field}': {self.message}"


class ReadOnlyAccessError(BoardSyncError):
    """
    Raised when a mutation requires credentials that were not supplied.

    Reported separately from validation errors: the value may be fine, the
    session simply cannot write.
    """


class NotFoundError(BoardSyncError):
    """
    Raised by the transport when the remote object does not exist.

    Synchronization contexts absorb this error and mark themselves missing;
    it only reaches callers through explicit operations such as delete.
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message, **context)
        self.status_code = 404


class TransportError(BoardSyncError):
    """
    Exception for HTTP failures.

    The original exception (if any) is preserved via ``__cause__``.

    Attributes:
        status_code: HTTP status code, or None when no response was received
    """

    def __init__(self, message: str, status_code: int | None = None, **context: object) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class TransportConnectionError(TransportError):
    """Raised when the service cannot be reached at all (DNS, refused, timeout)."""


class SerializationError(BoardSyncError):
    """Raised when a payload cannot be serialized or deserialized."""


class ConfigError(BoardSyncError):
    """Raised when configuration is missing or invalid."""


__all__ = [
    "BoardSyncError",
    "ConfigError",
    "FieldValidationError",
    "NotFoundError",
    "ReadOnlyAccessError",
    "SerializationError",
    "TransportConnectionError",
    "TransportError",
]
