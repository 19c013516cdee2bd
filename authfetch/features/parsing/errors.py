"""Error types for JSON document and attribute parsing."""

from typing import Any


class JsonError(Exception):
    """Base class for JSON parsing failures."""


class SerializationError(JsonError):
    """Deserialization from bytes to a JSON document failed.

    Attributes:
        underlying: The error raised by the decoder.
    """

    def __init__(self, underlying: Exception) -> None:
        super().__init__(f"JSON serialization failed: {underlying}")
        self.underlying = underlying


class UnexpectedTypeError(JsonError):
    """The decoded document is not of the requested top-level type."""

    def __init__(self, expected: Any, found: type) -> None:
        super().__init__(
            f"Expected JSON {_type_name(expected)}, found {_type_name(found)}"
        )
        self.expected = expected
        self.found = found


class UnexpectedRawValueError(JsonError):
    """A raw value does not correspond to any member of an enum-like type."""

    def __init__(self, type_: type, found: Any) -> None:
        super().__init__(f"Unexpected raw value {found!r} for {_type_name(type_)}")
        self.type = type_
        self.found = found


class AttributeParseError(JsonError):
    """Failure tied to a single attribute of a JSON dictionary."""

    def __init__(self, message: str, key: str, document: dict[str, Any]) -> None:
        super().__init__(message)
        self.key = key
        self.document = document


class UnexpectedAttributeTypeError(AttributeParseError):
    """An attribute's value has the wrong type."""

    def __init__(
        self,
        key: str,
        expected: Any,
        found: type,
        document: dict[str, Any],
    ) -> None:
        super().__init__(
            f"Attribute '{key}' expected {_type_name(expected)}, "
            f"found {_type_name(found)}",
            key,
            document,
        )
        self.expected = expected
        self.found = found


class UnexpectedAttributeValueError(AttributeParseError):
    """An attribute's value failed validation."""

    def __init__(self, key: str, document: dict[str, Any]) -> None:
        super().__init__(f"Attribute '{key}' has an unexpected value", key, document)


class MissingAttributeError(AttributeParseError):
    """An attribute is absent from the document."""

    def __init__(self, key: str, document: dict[str, Any]) -> None:
        super().__init__(f"Missing attribute '{key}'", key, document)


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or repr(type_)
