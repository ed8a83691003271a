# recordschema
# Attribute & Schema modeling for key-value records

"""
Core invariant: nothing reaches storage that has not passed through an
Attribute's cast, default and validation pipeline.

Schema translates between the logical attribute names callers use and the
physical field names the storage backend uses.
"""

from .attribute import Attribute, AttributeDefinition, ValidationResult
from .errors import (
    AttributeValidationError,
    CastError,
    DuplicateFieldError,
    ErrorCode,
    InvalidAttributeDefinition,
    InvalidKeyFacetTemplate,
    ReadOnlyAttributeError,
    RecordValidationError,
    SchemaDefinitionError,
    SchemaError,
)
from .facets import Facet, Facets
from .schema import Schema
from .types import AttributeType, CastType

__version__ = "0.1.0"
