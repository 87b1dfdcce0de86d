from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from tapi.schema.node import SchemaNode


class TapiError(Exception):
    """
    Base error for schema extraction and generation.

    When a node is attached, the message names the offending type and its
    module path so the host type can be located and fixed.
    """

    def __init__(self, message: str, node: Optional["SchemaNode"] = None) -> None:
        self.message = message
        self.node = node
        super().__init__(self._format())

    def _format(self) -> str:
        if self.node is None:
            return self.message
        path = ".".join(self.node.path) or "<root>"
        return f"{self.message} (type {self.node.name!r} at path {path})"


class SchemaError(TapiError):
    """The host produced a schema tapi cannot use."""


class MalformedSchemaError(SchemaError):
    """Internally inconsistent schema, e.g. a transparent struct without exactly one field."""


class UnsupportedTypeError(SchemaError):
    """Reflection has no shape for a Python type."""


class GenerationError(TapiError):
    """A renderer cannot produce correct output for a node."""


class UnsupportedEncodingError(GenerationError):
    """The requested wire encoding cannot be expressed (untagged enums, internally tagged tuples, ...)."""


class RouteValidationError(TapiError):
    """A route's path pattern disagrees with its path-parameter schema."""
