"""
Error codes and exceptions raised by recordschema.

Two categories:
    SchemaDefinitionError  - a model definition is unusable; Schema construction stops
    RecordValidationError  - a single record failed validation; the caller may retry
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .attribute import ValidationResult


class ErrorCode(Enum):
    INVALID_ATTRIBUTE_DEFINITION = "invalid_attribute_definition"
    INVALID_KEY_FACET_TEMPLATE = "invalid_key_facet_template"
    DUPLICATE_FIELD = "duplicate_field"
    CAST_ERROR = "cast_error"
    INVALID_ATTRIBUTE_VALUE = "invalid_attribute_value"
    READ_ONLY_ATTRIBUTE = "read_only_attribute"


class SchemaError(Exception):
    """Base class for every error raised by this package."""

    code: ErrorCode

    def __init__(self, code: ErrorCode, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(f"[{code.value}] {reason}")


# =============================================================================
# DEFINITION ERRORS
# =============================================================================

class SchemaDefinitionError(SchemaError):
    """Raised while building a Schema; the model cannot be used."""


class InvalidAttributeDefinition(SchemaDefinitionError):
    """
    An attribute definition has an unusable property.

    Carries the attribute name, the offending property and value, and a
    description of what would have been accepted.
    """

    def __init__(
        self,
        reason: str,
        attribute: Optional[str] = None,
        prop: Optional[str] = None,
        value: Any = None,
        expected: Optional[str] = None,
        code: ErrorCode = ErrorCode.INVALID_ATTRIBUTE_DEFINITION,
    ):
        self.attribute = attribute
        self.prop = prop
        self.value = value
        self.expected = expected
        super().__init__(code, reason)


@dataclass(frozen=True)
class FieldCollision:
    """One attribute whose physical field is already claimed."""
    attribute: str
    field: str
    used_by: str

    def describe(self) -> str:
        return (
            f'Schema Validation Error: Attribute "{self.attribute}" property "field". '
            f'Received: "{self.field}", '
            f'Expected: "Unique field property, already used by attribute {self.used_by}"'
        )


class DuplicateFieldError(InvalidAttributeDefinition):
    """Raised once with every field collision found in a model."""

    def __init__(self, collisions: list[FieldCollision]):
        self.collisions = list(collisions)
        first = self.collisions[0]
        super().__init__(
            "; ".join(collision.describe() for collision in self.collisions),
            attribute=first.attribute,
            prop="field",
            value=first.field,
            expected="Unique field property",
            code=ErrorCode.DUPLICATE_FIELD,
        )


class InvalidKeyFacetTemplate(SchemaDefinitionError):
    """A key facet refers to attributes the model does not define."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        described = ", ".join(f'"{item}"' for item in self.missing)
        super().__init__(
            ErrorCode.INVALID_KEY_FACET_TEMPLATE,
            "Invalid key facet template. The following facet attributes were "
            "described in the key facet template but were not included model's "
            f"attributes: {described}",
        )


# =============================================================================
# RECORD ERRORS
# =============================================================================

class RecordValidationError(SchemaError):
    """Raised when a single record value is unacceptable."""

    def __init__(self, code: ErrorCode, attribute: str, reason: str):
        self.attribute = attribute
        super().__init__(code, reason)


class CastError(RecordValidationError):
    """A value could not be coerced to the attribute's cast type."""

    def __init__(self, attribute: str, reason: str):
        super().__init__(ErrorCode.CAST_ERROR, attribute, reason)


class AttributeValidationError(RecordValidationError):
    """A value failed the attribute's type check or user validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(
            ErrorCode.INVALID_ATTRIBUTE_VALUE,
            result.attribute,
            f'Invalid value for attribute "{result.attribute}": {result.reason}.',
        )


class ReadOnlyAttributeError(RecordValidationError):
    """An update tried to change a read-only or key attribute."""

    def __init__(self, attribute: str):
        super().__init__(
            ErrorCode.READ_ONLY_ATTRIBUTE,
            attribute,
            f"Attribute {attribute} is Read-Only and cannot be updated",
        )
