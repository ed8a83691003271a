"""
Closed type vocabularies shared by Attribute and Schema.

AttributeType - the shape a stored value must have
CastType      - the coercions an attribute may apply before validation
"""

from __future__ import annotations

from enum import Enum


class AttributeType(Enum):
    """Every type an attribute may declare."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    ANY = "any"
    MAP = "map"
    SET = "set"
    LIST = "list"

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]


class CastType(Enum):
    """Coercions available through an attribute's ``cast`` property."""
    STRING = "string"
    NUMBER = "number"

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

DEFAULT_ATTRIBUTE_TYPE = AttributeType.STRING

# Only scalar types can be composed into an index key
VALID_FACET_TYPES = (
    AttributeType.STRING,
    AttributeType.NUMBER,
    AttributeType.BOOLEAN,
    AttributeType.ENUM,
)

CAST_TYPES = tuple(CastType)

# The table's own (primary) index has no name
TABLE_INDEX = ""
TABLE_INDEX_LABEL = "Table Index"

REASON_SEPARATOR = ", "
