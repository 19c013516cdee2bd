"""Typed extraction and validation of JSON attributes.

Every extraction narrows the untyped value stored under a key to a concrete
type, optionally validates it with a predicate, and lets the caller
substitute a domain-specific error (e.g. an API error object embedded in
the payload) when the attribute is missing or has the wrong type.

Precedence, for all variants:

1. Missing key: the domain error if ``parse_api_error`` produces one, else
   ``MissingAttributeError``. Optional variants return None instead of
   raising when no domain error is produced.
2. Wrong type: the domain error if produced, else
   ``UnexpectedAttributeTypeError``.
3. Predicate, enum construction or date formatting failure:
   ``UnexpectedAttributeValueError``; never overridden.
"""

import json
import types
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar, Union, get_args, get_origin

from authfetch.features.parsing.errors import (
    MissingAttributeError,
    SerializationError,
    UnexpectedAttributeTypeError,
    UnexpectedAttributeValueError,
    UnexpectedRawValueError,
    UnexpectedTypeError,
)


JsonDictionary = dict[str, Any]
JsonArray = list[Any]
ParseApiError = Callable[[JsonDictionary], Exception | None]

T = TypeVar("T")
E = TypeVar("E", bound=Enum)

_MISSING = object()


def parse_dictionary(data: bytes | str) -> JsonDictionary:
    """Parse raw data into a JSON dictionary.

    Args:
        data: The raw data to parse.

    Returns:
        The parsed dictionary.

    Raises:
        SerializationError: If the data is not valid JSON.
        UnexpectedTypeError: If the data is not a JSON object.
    """
    document: JsonDictionary = _parse(data, dict)
    return document


def parse_array(data: bytes | str) -> JsonArray:
    """Parse raw data into a JSON array.

    Args:
        data: The raw data to parse.

    Returns:
        The parsed list.

    Raises:
        SerializationError: If the data is not valid JSON.
        UnexpectedTypeError: If the data is not a JSON array.
    """
    document: JsonArray = _parse(data, list)
    return document


def parse_attribute(
    value_type: type[T],
    key: str,
    document: JsonDictionary,
    where: Callable[[T], bool] | None = None,
    parse_api_error: ParseApiError | None = None,
) -> T:
    """Parse a required attribute of a given type.

    Args:
        value_type: Expected type of the value.
        key: Attribute key.
        document: JSON dictionary holding the attribute.
        where: Optional validation predicate.
        parse_api_error: Optional domain error extractor.

    Returns:
        The narrowed value.

    Raises:
        JsonError: On missing key, wrong type, or failed validation.
        Exception: The domain error produced by ``parse_api_error``.
    """
    value = document.get(key, _MISSING)
    if value is _MISSING:
        raise _api_error(document, parse_api_error) or MissingAttributeError(
            key, document
        )
    return _narrow_value(value, value_type, key, document, where, parse_api_error)


def parse_optional_attribute(
    value_type: type[T],
    key: str,
    document: JsonDictionary,
    where: Callable[[T], bool] | None = None,
    parse_api_error: ParseApiError | None = None,
) -> T | None:
    """Parse an optional attribute of a given type.

    A missing key yields None unless ``parse_api_error`` extracts a domain
    error from the document, which is raised instead.
    """
    value = document.get(key, _MISSING)
    if value is _MISSING:
        _raise_api_error(document, parse_api_error)
        return None
    return _narrow_value(value, value_type, key, document, where, parse_api_error)


def parse_enum_attribute(
    enum_type: type[E],
    key: str,
    document: JsonDictionary,
    parse_api_error: ParseApiError | None = None,
) -> E:
    """Parse a required attribute into an enum member from its raw value.

    Args:
        enum_type: Enum whose member values are the raw JSON values.
        key: Attribute key.
        document: JSON dictionary holding the attribute.
        parse_api_error: Optional domain error extractor.

    Returns:
        The enum member.

    Raises:
        UnexpectedAttributeValueError: If no member has the raw value.
    """
    raw_value = parse_attribute(
        _raw_type(enum_type), key, document, parse_api_error=parse_api_error
    )
    return _enum_member(enum_type, raw_value, key, document)


def parse_optional_enum_attribute(
    enum_type: type[E],
    key: str,
    document: JsonDictionary,
    parse_api_error: ParseApiError | None = None,
) -> E | None:
    """Parse an optional attribute into an enum member from its raw value."""
    if key not in document:
        _raise_api_error(document, parse_api_error)
        return None
    return parse_enum_attribute(
        enum_type, key, document, parse_api_error=parse_api_error
    )


def parse_enum_value(enum_type: type[E], raw_value: Any) -> E:
    """Narrow a bare raw value, such as an array element, to an enum member.

    Raises:
        UnexpectedRawValueError: If the value is not a raw value of the enum.
    """
    if not _is_instance(raw_value, _raw_type(enum_type)):
        raise UnexpectedRawValueError(enum_type, raw_value)
    try:
        return enum_type(raw_value)
    except ValueError as exc:
        raise UnexpectedRawValueError(enum_type, raw_value) from exc


def parse_date_attribute(
    key: str,
    document: JsonDictionary,
    formatter: Callable[[Any], datetime | None],
    value_type: type = str,
    parse_api_error: ParseApiError | None = None,
) -> datetime:
    """Parse a required attribute and convert it to a datetime.

    Args:
        key: Attribute key.
        document: JSON dictionary holding the attribute.
        formatter: Converts the narrowed value, returning None on failure.
        value_type: Type the raw value is narrowed to before formatting.
        parse_api_error: Optional domain error extractor.

    Returns:
        The formatted datetime.

    Raises:
        UnexpectedAttributeValueError: If the formatter returns None.
    """
    value = parse_attribute(value_type, key, document, parse_api_error=parse_api_error)
    return _format_date(value, formatter, key, document)


def parse_optional_date_attribute(
    key: str,
    document: JsonDictionary,
    formatter: Callable[[Any], datetime | None],
    value_type: type = str,
    parse_api_error: ParseApiError | None = None,
) -> datetime | None:
    """Parse an optional attribute and convert it to a datetime."""
    if key not in document:
        _raise_api_error(document, parse_api_error)
        return None
    return parse_date_attribute(
        key, document, formatter, value_type=value_type, parse_api_error=parse_api_error
    )


def iso8601_formatter(value: str) -> datetime | None:
    """Convert an ISO 8601 string to a datetime.

    Naive timestamps are assumed to be UTC.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def timestamp_formatter(value: float) -> datetime | None:
    """Convert seconds since the Unix epoch to a UTC datetime."""
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, OSError, TypeError, ValueError):
        return None


def _parse(data: bytes | str, expected: type) -> Any:
    try:
        document = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SerializationError(exc) from exc

    if not isinstance(document, expected):
        raise UnexpectedTypeError(expected, type(document))
    return document


def _narrow_value(
    value: Any,
    value_type: Any,
    key: str,
    document: JsonDictionary,
    where: Callable[[Any], bool] | None,
    parse_api_error: ParseApiError | None,
) -> Any:
    """Narrow a present value: type check, then predicate."""
    if not _is_instance(value, value_type):
        raise _api_error(document, parse_api_error) or UnexpectedAttributeTypeError(
            key, value_type, type(value), document
        )

    # JSON has one number type; integral floats arrive as ints
    if value_type is float and isinstance(value, int):
        value = float(value)

    if where is not None and not where(value):
        raise UnexpectedAttributeValueError(key, document)
    return value


def _is_instance(value: Any, value_type: Any) -> bool:
    if value_type is Any or value_type is object:
        return True

    origin = get_origin(value_type)
    if origin is Union or origin is types.UnionType:
        return any(_is_instance(value, arg) for arg in get_args(value_type))

    target = origin or value_type
    if target in (int, float) and isinstance(value, bool):
        return False
    if target is float:
        return isinstance(value, int | float)
    return isinstance(value, target)


def _raw_type(enum_type: type[Enum]) -> Any:
    raw_types = {type(member.value) for member in enum_type}
    if len(raw_types) == 1:
        return raw_types.pop()
    return object


def _enum_member(
    enum_type: type[E], raw_value: Any, key: str, document: JsonDictionary
) -> E:
    try:
        return enum_type(raw_value)
    except ValueError as exc:
        raise UnexpectedAttributeValueError(key, document) from exc


def _format_date(
    value: Any,
    formatter: Callable[[Any], datetime | None],
    key: str,
    document: JsonDictionary,
) -> datetime:
    parsed = formatter(value)
    if parsed is None:
        raise UnexpectedAttributeValueError(key, document)
    return parsed


def _api_error(
    document: JsonDictionary, parse_api_error: ParseApiError | None
) -> Exception | None:
    if parse_api_error is None:
        return None
    return parse_api_error(document)


def _raise_api_error(
    document: JsonDictionary, parse_api_error: ParseApiError | None
) -> None:
    api_error = _api_error(document, parse_api_error)
    if api_error is not None:
        raise api_error
