"""Unit tests for typed JSON attribute extraction."""

from datetime import UTC, datetime, timedelta, timezone
from enum import Enum
from typing import Any

import pytest

from authfetch.features.parsing import (
    AttributeParseError,
    MissingAttributeError,
    UnexpectedAttributeTypeError,
    UnexpectedAttributeValueError,
    UnexpectedRawValueError,
    iso8601_formatter,
    parse_attribute,
    parse_date_attribute,
    parse_enum_attribute,
    parse_enum_value,
    parse_optional_attribute,
    parse_optional_date_attribute,
    parse_optional_enum_attribute,
    timestamp_formatter,
)


class ApiError(Exception):
    """Error object embedded in an API payload."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


def parse_api_error(document: dict[str, Any]) -> Exception | None:
    """Extract an embedded API error, if any."""
    error = document.get("error")
    if isinstance(error, dict) and isinstance(error.get("code"), str):
        return ApiError(error["code"])
    return None


class Color(Enum):
    RED = "red"
    GREEN = "green"


class Priority(Enum):
    LOW = 1
    HIGH = 2


class Setting(Enum):
    AUTO = "auto"
    LEVEL_ONE = 1


class TestParseAttribute:
    """Tests for required attribute extraction."""

    def test_returns_typed_value(self) -> None:
        """Test extracting an attribute of the expected type."""
        assert parse_attribute(int, "age", {"age": 30}) == 30

    def test_missing_key(self) -> None:
        """Test that a missing key raises MissingAttributeError."""
        document = {"name": "Ada"}

        with pytest.raises(MissingAttributeError) as exc_info:
            parse_attribute(int, "age", document)

        assert exc_info.value.key == "age"
        assert exc_info.value.document is document

    def test_wrong_type(self) -> None:
        """Test that a string is not narrowed to int."""
        with pytest.raises(UnexpectedAttributeTypeError) as exc_info:
            parse_attribute(int, "age", {"age": "30"})

        assert exc_info.value.key == "age"
        assert exc_info.value.expected is int
        assert exc_info.value.found is str

    def test_null_value_is_wrong_type(self) -> None:
        """Test that a present null is a type mismatch, not a missing key."""
        with pytest.raises(UnexpectedAttributeTypeError):
            parse_attribute(str, "name", {"name": None})

    def test_bool_is_not_int(self) -> None:
        """Test that JSON booleans do not narrow to numbers."""
        with pytest.raises(UnexpectedAttributeTypeError):
            parse_attribute(int, "count", {"count": True})

    def test_int_narrows_to_float(self) -> None:
        """Test that integral numbers are accepted as floats."""
        value = parse_attribute(float, "score", {"score": 3})

        assert value == 3.0
        assert isinstance(value, float)

    def test_generic_types_check_origin(self) -> None:
        """Test narrowing to parameterized containers."""
        document = {"tags": ["a", "b"], "meta": {"k": 1}}

        assert parse_attribute(list[str], "tags", document) == ["a", "b"]
        assert parse_attribute(dict[str, Any], "meta", document) == {"k": 1}

    def test_union_types(self) -> None:
        """Test narrowing to a union of types."""
        assert parse_attribute(int | str, "id", {"id": "x1"}) == "x1"

        with pytest.raises(UnexpectedAttributeTypeError):
            parse_attribute(int | str, "id", {"id": 1.5})

    def test_any_accepts_everything(self) -> None:
        """Test that Any skips type narrowing."""
        assert parse_attribute(Any, "value", {"value": None}) is None

    def test_predicate_passes(self) -> None:
        """Test that a satisfied predicate returns the value."""
        assert parse_attribute(int, "age", {"age": 30}, where=lambda v: v > 0) == 30

    def test_predicate_fails(self) -> None:
        """Test that a failed predicate raises UnexpectedAttributeValueError."""
        with pytest.raises(UnexpectedAttributeValueError) as exc_info:
            parse_attribute(int, "age", {"age": -1}, where=lambda v: v >= 0)

        assert exc_info.value.key == "age"

    def test_errors_share_base_class(self) -> None:
        """Test that attribute errors derive from AttributeParseError."""
        with pytest.raises(AttributeParseError):
            parse_attribute(int, "age", {})


class TestDomainErrorSubstitution:
    """Tests for replacing attribute errors with embedded API errors."""

    def test_missing_key_uses_domain_error(self) -> None:
        """Test that a domain error replaces MissingAttributeError."""
        document = {"error": {"code": "rate_limited"}}

        with pytest.raises(ApiError) as exc_info:
            parse_attribute(int, "age", document, parse_api_error=parse_api_error)

        assert exc_info.value.code == "rate_limited"

    def test_wrong_type_uses_domain_error(self) -> None:
        """Test that a domain error replaces UnexpectedAttributeTypeError."""
        document = {"age": "thirty", "error": {"code": "bad_request"}}

        with pytest.raises(ApiError):
            parse_attribute(int, "age", document, parse_api_error=parse_api_error)

    def test_falls_back_when_no_domain_error(self) -> None:
        """Test the default error when the extractor produces nothing."""
        with pytest.raises(MissingAttributeError):
            parse_attribute(int, "age", {}, parse_api_error=parse_api_error)

    def test_predicate_failure_is_never_overridden(self) -> None:
        """Test that value validation failures keep their own error."""
        document = {"age": -1, "error": {"code": "bad_request"}}

        with pytest.raises(UnexpectedAttributeValueError):
            parse_attribute(
                int,
                "age",
                document,
                where=lambda v: v >= 0,
                parse_api_error=parse_api_error,
            )

    def test_present_valid_value_ignores_domain_error(self) -> None:
        """Test that a valid attribute is returned despite an error object."""
        document = {"age": 30, "error": {"code": "partial"}}

        assert (
            parse_attribute(int, "age", document, parse_api_error=parse_api_error)
            == 30
        )


class TestParseOptionalAttribute:
    """Tests for optional attribute extraction."""

    def test_missing_key_returns_none(self) -> None:
        """Test that a missing key yields None."""
        assert parse_optional_attribute(int, "age", {}) is None

    def test_present_value(self) -> None:
        """Test that a present value is returned."""
        assert parse_optional_attribute(str, "name", {"name": "Ada"}) == "Ada"

    def test_missing_key_with_domain_error(self) -> None:
        """Test that a domain error is raised instead of returning None."""
        document = {"error": {"code": "not_found"}}

        with pytest.raises(ApiError):
            parse_optional_attribute(
                int, "age", document, parse_api_error=parse_api_error
            )

    def test_missing_key_without_domain_error(self) -> None:
        """Test that None is returned when the extractor produces nothing."""
        assert (
            parse_optional_attribute(int, "age", {}, parse_api_error=parse_api_error)
            is None
        )

    def test_present_null_is_wrong_type(self) -> None:
        """Test that a present null still fails narrowing."""
        with pytest.raises(UnexpectedAttributeTypeError):
            parse_optional_attribute(int, "age", {"age": None})

    def test_predicate_fails(self) -> None:
        """Test that predicates apply to present optional values."""
        with pytest.raises(UnexpectedAttributeValueError):
            parse_optional_attribute(
                str, "name", {"name": ""}, where=lambda v: len(v) > 0
            )


class TestParseEnumAttribute:
    """Tests for enum attribute extraction."""

    def test_string_enum(self) -> None:
        """Test mapping a string raw value to a member."""
        assert parse_enum_attribute(Color, "color", {"color": "red"}) is Color.RED

    def test_int_enum(self) -> None:
        """Test mapping an integer raw value to a member."""
        assert (
            parse_enum_attribute(Priority, "priority", {"priority": 2})
            is Priority.HIGH
        )

    def test_unknown_raw_value(self) -> None:
        """Test that an unknown raw value is an unexpected value."""
        with pytest.raises(UnexpectedAttributeValueError) as exc_info:
            parse_enum_attribute(Color, "color", {"color": "blue"})

        assert exc_info.value.key == "color"

    def test_wrong_raw_type(self) -> None:
        """Test that a raw value of the wrong type is a type mismatch."""
        with pytest.raises(UnexpectedAttributeTypeError):
            parse_enum_attribute(Color, "color", {"color": 1})

    def test_missing_key(self) -> None:
        """Test that a missing enum attribute raises MissingAttributeError."""
        with pytest.raises(MissingAttributeError):
            parse_enum_attribute(Color, "color", {})

    def test_optional_missing_key(self) -> None:
        """Test that an optional enum attribute may be absent."""
        assert parse_optional_enum_attribute(Color, "color", {}) is None

    def test_optional_present(self) -> None:
        """Test that an optional enum attribute is converted when present."""
        assert (
            parse_optional_enum_attribute(Color, "color", {"color": "green"})
            is Color.GREEN
        )

    def test_optional_unknown_raw_value(self) -> None:
        """Test that an optional enum attribute still validates its value."""
        with pytest.raises(UnexpectedAttributeValueError):
            parse_optional_enum_attribute(Color, "color", {"color": "blue"})

    def test_optional_null_with_mixed_raw_values(self) -> None:
        """Test that a present null is not mistaken for a missing attribute."""
        with pytest.raises(UnexpectedAttributeValueError) as exc_info:
            parse_optional_enum_attribute(Setting, "mode", {"mode": None})

        assert exc_info.value.key == "mode"

    def test_optional_mixed_raw_values(self) -> None:
        """Test an enum whose members have raw values of different types."""
        result = parse_optional_enum_attribute(Setting, "mode", {"mode": 1})

        assert result is Setting.LEVEL_ONE


class TestParseEnumValue:
    """Tests for bare raw value conversion."""

    def test_known_value(self) -> None:
        """Test converting an array element to a member."""
        assert [parse_enum_value(Color, raw) for raw in ["red", "green"]] == [
            Color.RED,
            Color.GREEN,
        ]

    def test_unknown_value(self) -> None:
        """Test that an unknown value raises UnexpectedRawValueError."""
        with pytest.raises(UnexpectedRawValueError) as exc_info:
            parse_enum_value(Color, "blue")

        assert exc_info.value.type is Color
        assert exc_info.value.found == "blue"

    def test_wrong_raw_type(self) -> None:
        """Test that a bool is not accepted for an integer enum."""
        with pytest.raises(UnexpectedRawValueError):
            parse_enum_value(Priority, True)


class TestParseDateAttribute:
    """Tests for date attribute extraction."""

    def test_iso8601_with_offset(self) -> None:
        """Test parsing an ISO 8601 timestamp with an offset."""
        result = parse_date_attribute(
            "created", {"created": "2024-01-15T10:30:00+02:00"}, iso8601_formatter
        )

        assert result == datetime(
            2024, 1, 15, 10, 30, tzinfo=timezone(timedelta(hours=2))
        )

    def test_iso8601_naive_is_utc(self) -> None:
        """Test that naive timestamps are treated as UTC."""
        result = parse_date_attribute(
            "created", {"created": "2024-01-15T10:30:00"}, iso8601_formatter
        )

        assert result == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def test_unix_timestamp(self) -> None:
        """Test parsing seconds since the epoch."""
        result = parse_date_attribute(
            "created", {"created": 0}, timestamp_formatter, value_type=float
        )

        assert result == datetime(1970, 1, 1, tzinfo=UTC)

    def test_formatter_failure(self) -> None:
        """Test that an unparseable date is an unexpected value."""
        with pytest.raises(UnexpectedAttributeValueError):
            parse_date_attribute(
                "created", {"created": "yesterday"}, iso8601_formatter
            )

    def test_wrong_raw_type(self) -> None:
        """Test that a number is rejected where a date string is expected."""
        with pytest.raises(UnexpectedAttributeTypeError):
            parse_date_attribute("created", {"created": 123}, iso8601_formatter)

    def test_missing_key(self) -> None:
        """Test that a missing date raises MissingAttributeError."""
        with pytest.raises(MissingAttributeError):
            parse_date_attribute("created", {}, iso8601_formatter)

    def test_optional_missing_key(self) -> None:
        """Test that an optional date may be absent."""
        assert parse_optional_date_attribute("updated", {}, iso8601_formatter) is None

    def test_optional_present(self) -> None:
        """Test that an optional date is converted when present."""
        result = parse_optional_date_attribute(
            "updated", {"updated": "2024-02-01T00:00:00Z"}, iso8601_formatter
        )

        assert result == datetime(2024, 2, 1, tzinfo=UTC)

    def test_optional_missing_with_domain_error(self) -> None:
        """Test that an optional date surfaces an embedded API error."""
        with pytest.raises(ApiError):
            parse_optional_date_attribute(
                "updated",
                {"error": {"code": "gone"}},
                iso8601_formatter,
                parse_api_error=parse_api_error,
            )

    def test_optional_null_with_any_value_type(self) -> None:
        """Test that a present null date fails instead of reading as absent."""
        with pytest.raises(UnexpectedAttributeValueError):
            parse_optional_date_attribute(
                "updated", {"updated": None}, iso8601_formatter, value_type=Any
            )

    def test_optional_null_timestamp_with_object_value_type(self) -> None:
        """Test that the timestamp formatter rejects a null value."""
        with pytest.raises(UnexpectedAttributeValueError):
            parse_optional_date_attribute(
                "updated", {"updated": None}, timestamp_formatter, value_type=object
            )
