"""
Serializer protocol and registry.

Payloads travel as text; the serializer turning them into Python objects is
pluggable and selected once per service from ``ServiceConfig.serializer``.

The pattern mirrors the source/adapter registries elsewhere:
- Serializer is a runtime_checkable Protocol
- Implementations are registered with a decorator
- ``get_serializer()`` instantiates on demand
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import pydantic_core

from boardsync.core.exceptions import SerializationError


@runtime_checkable
class Serializer(Protocol):
    """Protocol for payload (de)serializers."""

    @property
    def name(self) -> str:
        """Registered name of this serializer."""
        ...

    def serialize(self, obj: Any) -> str:
        """
        Encode an object for the wire.

        Raises:
            SerializationError: If the object cannot be encoded
        """
        ...

    def deserialize(self, text: str) -> Any:
        """
        Decode a wire payload. Empty text decodes to None.

        Raises:
            SerializationError: If the text is not valid
        """
        ...


_serializers: dict[str, type[Serializer]] = {}


def register_serializer(name: str) -> Callable[[type[Serializer]], type[Serializer]]:
    """
    Decorator to register a serializer implementation.

    Args:
        name: Serializer name used in configuration

    Raises:
        ValueError: If the name is already registered
    """

    def decorator(serializer_class: type[Serializer]) -> type[Serializer]:
        if name in _serializers:
            raise ValueError(
                f"Serializer '{name}' is already registered. "
                f"Available serializers: {', '.join(_serializers.keys())}"
            )
        _serializers[name] = serializer_class
        return serializer_class

    return decorator


def get_serializer(name: str) -> Serializer:
    """
    Get a serializer by name.

    Raises:
        ValueError: If the name is not registered
    """
    serializer_class = _serializers.get(name)
    if serializer_class is None:
        available = ", ".join(_serializers.keys()) if _serializers else "none registered"
        raise ValueError(f"Serializer '{name}' not registered. Available serializers: {available}")
    return serializer_class()


def list_serializers() -> list[str]:
    """List registered serializer names in alphabetical order."""
    return sorted(_serializers.keys())


@register_serializer("json")
class JsonSerializer:
    """Standard library JSON; compact separators, no custom types."""

    @property
    def name(self) -> str:
        return "json"

    def serialize(self, obj: Any) -> str:
        try:
            return json.dumps(obj, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot serialize payload: {e}", serializer=self.name) from e

    def deserialize(self, text: str) -> Any:
        if not text or not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(
                f"Invalid JSON in response: {e}", serializer=self.name, position=e.pos
            ) from e


@register_serializer("pydantic")
class PydanticSerializer:
    """
    pydantic-core JSON.

    Encodes datetimes, enums and models natively, so bodies may carry rich
    values (e.g. a card's due date) without converting them first.
    """

    @property
    def name(self) -> str:
        return "pydantic"

    def serialize(self, obj: Any) -> str:
        try:
            return pydantic_core.to_json(obj).decode()
        except pydantic_core.PydanticSerializationError as e:
            raise SerializationError(f"Cannot serialize payload: {e}", serializer=self.name) from e

    def deserialize(self, text: str) -> Any:
        if not text or not text.strip():
            return None
        try:
            return pydantic_core.from_json(text)
        except ValueError as e:
            raise SerializationError(f"Invalid JSON in response: {e}", serializer=self.name) from e


__all__ = [
    "JsonSerializer",
    "PydanticSerializer",
    "Serializer",
    "get_serializer",
    "list_serializers",
    "register_serializer",
]
