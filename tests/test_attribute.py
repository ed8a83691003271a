"""
Tests for Attribute - the per-value cast, default, validation and hook pipeline.

These tests verify that:
1. Bad definitions are rejected at construction
2. Casting and defaulting resolve raw values predictably
3. Type checks and user validation combine into one result
4. get_validate raises with the attribute's name and reason
"""

import re

import pytest

from recordschema.attribute import Attribute, AttributeDefinition, ValidationResult
from recordschema.errors import (
    AttributeValidationError,
    CastError,
    ErrorCode,
    InvalidAttributeDefinition,
)
from recordschema.types import AttributeType


# =============================================================================
# CONSTRUCTION
# =============================================================================

class TestAttributeConstruction:
    """Test definition normalization and construction-time errors."""

    def test_field_defaults_to_name(self):
        """An attribute without a field is stored under its own name."""
        attribute = Attribute({"name": "title"})
        assert attribute.field == "title"
        assert attribute.type == AttributeType.STRING

    def test_explicit_field(self):
        attribute = Attribute({"name": "title", "field": "t"})
        assert attribute.field == "t"

    def test_enum_shorthand(self):
        """A sequence type is the same as type enum with those values."""
        shorthand = Attribute({"name": "status", "type": ["a", "b"]})
        explicit = Attribute({"name": "status", "type": "enum", "enumArray": ["a", "b"]})
        assert shorthand.type == explicit.type == AttributeType.ENUM
        assert shorthand.enum_array == explicit.enum_array == ("a", "b")

    def test_type_accepts_enum_member(self):
        attribute = Attribute({"name": "n", "type": AttributeType.NUMBER})
        assert attribute.type == AttributeType.NUMBER

    def test_invalid_type_rejected(self):
        with pytest.raises(InvalidAttributeDefinition, match='Invalid "type" property') as exc:
            Attribute({"name": "n", "type": "decimal"})
        assert exc.value.attribute == "n"
        assert exc.value.prop == "type"
        assert exc.value.code == ErrorCode.INVALID_ATTRIBUTE_DEFINITION

    def test_invalid_cast_rejected(self):
        with pytest.raises(InvalidAttributeDefinition, match='Invalid "cast" property') as exc:
            Attribute({"name": "n", "cast": "boolean"})
        assert "string, number" in exc.value.expected

    def test_invalid_get_rejected(self):
        with pytest.raises(InvalidAttributeDefinition, match='Invalid "get" property'):
            Attribute({"name": "n", "get": "upper"})

    def test_invalid_set_rejected(self):
        with pytest.raises(InvalidAttributeDefinition, match='Invalid "set" property'):
            Attribute({"name": "n", "set": 42})

    def test_invalid_validate_rejected(self):
        with pytest.raises(InvalidAttributeDefinition, match='Invalid "validate" property'):
            Attribute({"name": "n", "validate": "^a+$"})

    def test_flags_coerced_to_bool(self):
        attribute = Attribute({"name": "n", "required": 1, "readOnly": "yes", "hide": 0})
        assert attribute.required is True
        assert attribute.read_only is True
        assert attribute.hide is False

    def test_attribute_is_immutable(self):
        """Nothing on an attribute may change after construction."""
        attribute = Attribute({"name": "n"})
        with pytest.raises(AttributeError):
            attribute.required = True
        with pytest.raises(AttributeError):
            attribute.cast = lambda value: value

    def test_accepts_definition_object(self):
        definition = AttributeDefinition.from_raw("count", "number")
        attribute = Attribute(definition)
        assert attribute.name == "count"
        assert attribute.type == AttributeType.NUMBER


class TestAttributeDefinition:
    """Test shorthand forms fold into one canonical definition."""

    def test_bare_type_name(self):
        definition = AttributeDefinition.from_raw("n", "number")
        assert definition.name == "n"
        assert definition.type == "number"

    def test_enum_sequence(self):
        definition = AttributeDefinition.from_raw("n", ["x", "y"])
        assert definition.type == ["x", "y"]

    def test_mapping_with_camel_case_keys(self):
        definition = AttributeDefinition.from_raw(
            "n", {"readOnly": True, "enumArray": ["x"], "unknown": 1}
        )
        assert definition.read_only is True
        assert definition.enum_array == ("x",)

    def test_unsupported_definition_rejected(self):
        with pytest.raises(InvalidAttributeDefinition, match="Invalid definition"):
            AttributeDefinition.from_raw("n", 12)


# =============================================================================
# CAST & DEFAULT
# =============================================================================

class TestCastAndDefault:
    """Test val() resolution of raw values."""

    def test_string_cast_passes_strings(self):
        attribute = Attribute({"name": "s", "cast": "string"})
        assert attribute.val("abc") == "abc"

    def test_string_cast_json_encodes(self):
        attribute = Attribute({"name": "s", "cast": "string"})
        assert attribute.val(12) == "12"
        assert attribute.val({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'
        assert attribute.val(True) == "true"

    def test_number_cast_converts_strings(self):
        attribute = Attribute({"name": "n", "type": "number", "cast": "number"})
        assert attribute.val("12") == 12
        assert attribute.val("1.5") == 1.5
        assert attribute.val(7) == 7

    def test_number_cast_not_a_number(self):
        """A numeric cast that cannot produce a number raises CastError."""
        attribute = Attribute({"name": "n", "cast": "number"})
        with pytest.raises(CastError, match="results in NaN") as exc:
            attribute.val("twelve")
        assert exc.value.attribute == "n"

    def test_number_cast_rejects_nan_string(self):
        attribute = Attribute({"name": "n", "cast": "number"})
        with pytest.raises(CastError):
            attribute.val("nan")

    def test_cast_of_absent_value_raises(self):
        """The cast callable itself refuses an absent value."""
        attribute = Attribute({"name": "n", "cast": "number"})
        with pytest.raises(CastError, match="is undefined"):
            attribute.cast(None)

    def test_absent_value_with_cast_uses_default(self):
        attribute = Attribute({"name": "n", "cast": "number", "default": 5})
        assert attribute.val(None) == 5

    def test_static_default(self):
        attribute = Attribute({"name": "n", "default": "fallback"})
        assert attribute.val(None) == "fallback"
        assert attribute.val("given") == "given"

    def test_callable_default_invoked_each_time(self):
        calls = []

        def produce():
            calls.append(1)
            return len(calls)

        attribute = Attribute({"name": "n", "default": produce})
        assert attribute.val(None) == 1
        assert attribute.val(None) == 2

    def test_no_default_leaves_value_absent(self):
        attribute = Attribute({"name": "n"})
        assert attribute.val(None) is None

    def test_optional_cast_attribute_stays_absent(self):
        attribute = Attribute({"name": "n", "cast": "number"})
        assert attribute.val(None) is None

    def test_required_cast_attribute_without_default(self):
        """An absent required value has nothing to cast."""
        attribute = Attribute({"name": "n", "cast": "number", "required": True})
        with pytest.raises(CastError, match="cannot be cast to type number; Value is required") as exc:
            attribute.val(None)
        assert exc.value.attribute == "n"
        assert exc.value.code == ErrorCode.CAST_ERROR

    def test_required_cast_attribute_with_default(self):
        attribute = Attribute({"name": "n", "cast": "number", "required": True, "default": 3})
        assert attribute.val(None) == 3

    @pytest.mark.parametrize("raw, expected", [
        ("", 0),
        ("   ", 0),
        (" 42 ", 42),
        ("1e3", 1000),
        ("0x10", 16),
        ("0b11", 3),
        ("Infinity", float("inf")),
        ("-Infinity", float("-inf")),
    ])
    def test_number_cast_grammar(self, raw, expected):
        attribute = Attribute({"name": "n", "cast": "number"})
        assert attribute.val(raw) == expected

    @pytest.mark.parametrize("raw", ["1_000", "inf", "-inf", "infinity", "NaN", "-0x10", "0xZZ", [1]])
    def test_number_cast_rejects(self, raw):
        attribute = Attribute({"name": "n", "cast": "number"})
        with pytest.raises(CastError, match="results in NaN"):
            attribute.val(raw)


# =============================================================================
# TYPE CHECKS
# =============================================================================

class TestTypeChecks:
    """Test the built-in type rule for each attribute type."""

    @pytest.mark.parametrize(
        "attribute_type, good, bad",
        [
            ("string", "abc", 1),
            ("number", 1.5, "1.5"),
            ("number", 3, True),
            ("boolean", False, 0),
            ("map", {"a": 1}, ["a"]),
            ("list", ["a"], {"a"}),
            ("list", ("a",), "a"),
            ("set", {"a"}, {"a": 1}),
            ("set", ["a"], "a"),
        ],
    )
    def test_type_acceptance(self, attribute_type, good, bad):
        attribute = Attribute({"name": "v", "type": attribute_type})
        assert attribute.is_valid(good).valid is True
        assert attribute.is_valid(bad).valid is False

    def test_any_accepts_everything(self):
        attribute = Attribute({"name": "v", "type": "any"})
        for value in ("a", 1, [], {}, object()):
            assert attribute.is_valid(value)

    def test_enum_membership(self):
        attribute = Attribute({"name": "v", "type": ["x", "y"]})
        assert attribute.is_valid("x")
        valid, reason = attribute.is_valid("z")
        assert valid is False
        assert "acceptable values: x, y" in reason

    @pytest.mark.parametrize("enum_values, value, expected", [
        ([0, 1], True, False),
        ([0, 1], False, False),
        ([0, 1], 1, True),
        ([0, 1], 1.0, True),
        ([0, 1], "1", False),
        ([True, False], 1, False),
        ([True, False], True, True),
    ])
    def test_enum_membership_keeps_booleans_apart(self, enum_values, value, expected):
        attribute = Attribute({"name": "v", "type": enum_values})
        assert attribute.is_valid(value).valid is expected

    def test_type_mismatch_reason(self):
        attribute = Attribute({"name": "v", "type": "number"})
        valid, reason = attribute.is_valid("1")
        assert not valid
        assert reason == 'Received value of type "str", expected value of type "number"'

    def test_absent_optional_value_is_valid(self):
        attribute = Attribute({"name": "v", "type": "number"})
        assert attribute.is_valid(None).valid is True

    def test_absent_required_value_is_invalid(self):
        attribute = Attribute({"name": "v", "required": True})
        result = attribute.is_valid(None)
        assert result.valid is False
        assert result.reason == "Value is required"
        assert result.attribute == "v"


# =============================================================================
# USER VALIDATION
# =============================================================================

class TestUserValidation:
    """Test user-supplied validate callables and patterns."""

    def test_callable_returning_reason(self):
        attribute = Attribute({
            "name": "age",
            "type": "number",
            "validate": lambda value: "must be positive" if value < 0 else "",
        })
        assert attribute.is_valid(3)
        assert tuple(attribute.is_valid(-1)) == (False, "must be positive")

    def test_callable_returning_bool(self):
        attribute = Attribute({"name": "age", "type": "number", "validate": lambda v: v > 0})
        assert attribute.is_valid(1)
        assert tuple(attribute.is_valid(0)) == (False, "Failed user defined validation")

    def test_callable_returning_pair(self):
        attribute = Attribute({"name": "age", "validate": lambda v: (v == "ok", "not ok")})
        assert attribute.is_valid("ok")
        assert tuple(attribute.is_valid("no")) == (False, "not ok")

    def test_pattern(self):
        attribute = Attribute({"name": "code", "validate": re.compile(r"^[A-Z]{3}$")})
        assert attribute.is_valid("ABC")
        assert tuple(attribute.is_valid("abc")) == (False, "Failed user defined regex")

    def test_pattern_skips_absent_value(self):
        attribute = Attribute({"name": "code", "validate": re.compile(r"^[A-Z]{3}$")})
        assert attribute.is_valid(None)

    def test_reasons_combined(self):
        """Type and user failures are both reported."""
        attribute = Attribute({
            "name": "v",
            "type": "number",
            "validate": lambda value: "too short",
        })
        valid, reason = attribute.is_valid("x")
        assert not valid
        assert reason == (
            'Received value of type "str", expected value of type "number", too short'
        )

    def test_validator_exception_becomes_failure(self):
        """is_valid never raises."""
        def explode(value):
            raise RuntimeError("validator broke")

        attribute = Attribute({"name": "v", "validate": explode})
        result = attribute.is_valid("x")
        assert isinstance(result, ValidationResult)
        assert result.valid is False
        assert result.reason == "validator broke"


# =============================================================================
# GET_VALIDATE
# =============================================================================

class TestGetValidate:
    """Test the combined resolve-then-validate entry point."""

    def test_returns_resolved_value(self):
        attribute = Attribute({"name": "n", "type": "number", "cast": "number"})
        assert attribute.get_validate("4") == 4

    def test_required_without_default_fails(self):
        attribute = Attribute({"name": "title", "required": True})
        with pytest.raises(AttributeValidationError, match="Value is required") as exc:
            attribute.get_validate(None)
        assert exc.value.attribute == "title"
        assert 'Invalid value for attribute "title"' in str(exc.value)
        assert exc.value.result.valid is False

    def test_required_with_default_passes(self):
        attribute = Attribute({"name": "title", "required": True, "default": "untitled"})
        assert attribute.get_validate(None) == "untitled"

    def test_required_cast_without_default_fails(self):
        attribute = Attribute({"name": "count", "cast": "number", "required": True})
        with pytest.raises(CastError, match="Value is required"):
            attribute.get_validate(None)

    def test_result_is_structured(self):
        """A result unpacks to (valid, reason) and still names its attribute."""
        result = Attribute({"name": "title", "required": True}).is_valid(None)
        valid, reason = result
        assert (valid, reason) == (False, "Value is required")
        assert result.attribute == "title"
        assert not result

    def test_cast_error_propagates(self):
        attribute = Attribute({"name": "n", "cast": "number"})
        with pytest.raises(CastError):
            attribute.get_validate("abc")


# =============================================================================
# HOOKS
# =============================================================================

class TestHooks:
    """Test get/set transform hooks."""

    def test_pass_through_by_default(self):
        attribute = Attribute({"name": "n"})
        assert attribute.get("v", {}) == "v"
        assert attribute.set("v", {}) == "v"

    def test_hooks_receive_payload(self):
        attribute = Attribute({
            "name": "full",
            "get": lambda value, payload: f"{payload['first']} {value}",
            "set": lambda value, payload: value.upper(),
        })
        assert attribute.get("smith", {"first": "ann"}) == "ann smith"
        assert attribute.set("smith", {}) == "SMITH"
