"""Typed JSON document and attribute parsing."""

from authfetch.features.parsing.errors import (
    AttributeParseError,
    JsonError,
    MissingAttributeError,
    SerializationError,
    UnexpectedAttributeTypeError,
    UnexpectedAttributeValueError,
    UnexpectedRawValueError,
    UnexpectedTypeError,
)
from authfetch.features.parsing.json_attributes import (
    JsonArray,
    JsonDictionary,
    ParseApiError,
    iso8601_formatter,
    parse_array,
    parse_attribute,
    parse_date_attribute,
    parse_dictionary,
    parse_enum_attribute,
    parse_enum_value,
    parse_optional_attribute,
    parse_optional_date_attribute,
    parse_optional_enum_attribute,
    timestamp_formatter,
)


__all__ = [
    # Documents
    "JsonArray",
    "JsonDictionary",
    "ParseApiError",
    "parse_array",
    "parse_dictionary",
    # Attributes
    "parse_attribute",
    "parse_optional_attribute",
    "parse_enum_attribute",
    "parse_optional_enum_attribute",
    "parse_enum_value",
    "parse_date_attribute",
    "parse_optional_date_attribute",
    # Date formatters
    "iso8601_formatter",
    "timestamp_formatter",
    # Errors
    "JsonError",
    "SerializationError",
    "UnexpectedTypeError",
    "UnexpectedRawValueError",
    "AttributeParseError",
    "UnexpectedAttributeTypeError",
    "UnexpectedAttributeValueError",
    "MissingAttributeError",
]
