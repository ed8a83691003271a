"""
Schema - the complete attribute set of one data model.

A Schema is built once per model from raw attribute definitions plus the
key-facet description supplied by the index layer. Construction validates
the definitions and derives the name <-> field translation tables. After
that the Schema is read-only and can be shared freely; every whole-record
operation works on its own copy of the payload.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .attribute import Attribute, AttributeDefinition
from .errors import (
    DuplicateFieldError,
    FieldCollision,
    InvalidAttributeDefinition,
    InvalidKeyFacetTemplate,
    ReadOnlyAttributeError,
)
from .facets import Facets
from .types import TABLE_INDEX, TABLE_INDEX_LABEL, VALID_FACET_TYPES

logger = logging.getLogger(__name__)


class Schema:
    """
    Attribute definitions and field translations for one data model.

    Raises:
        InvalidAttributeDefinition: If any attribute definition is unusable,
            or a key facet attribute has a non-scalar type
        InvalidKeyFacetTemplate: If a facet names an attribute the model lacks
        DuplicateFieldError: If two attributes claim the same physical field
    """

    def __init__(
        self,
        attributes: Optional[Mapping[str, Any]] = None,
        facets: Union[Facets, Mapping[str, Any], None] = None,
    ):
        attributes = {} if attributes is None else attributes
        facets = Facets.from_dict(facets)
        self._validate_properties(attributes)
        normalized = self._normalize_attributes(attributes, facets)
        self.attributes = MappingProxyType(normalized["attributes"])
        # Reserved; nothing populates it yet
        self.enums = MappingProxyType(normalized["enums"])
        self.translation_for_table = MappingProxyType(normalized["translation_for_table"])
        self.translation_for_retrieval = MappingProxyType(normalized["translation_for_retrieval"])

    def __repr__(self) -> str:
        return f"Schema(attributes={list(self.attributes)!r})"

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    def _validate_properties(self, attributes: Any) -> None:
        if not isinstance(attributes, Mapping):
            raise InvalidAttributeDefinition(
                f"Invalid attributes: expected a mapping of attribute name to "
                f"definition, got {type(attributes).__name__}",
                value=attributes,
            )

    def _normalize_attributes(self, attributes: Mapping[str, Any], facets: Facets) -> dict:
        collisions: list[FieldCollision] = []
        normalized: dict[str, Attribute] = {}
        used_fields: dict[str, str] = {}
        translation_for_table: dict[str, str] = {}
        translation_for_retrieval: dict[str, str] = {}

        for name, raw in attributes.items():
            attribute = AttributeDefinition.from_raw(name, raw)

            # Composite key fields belong to the index layer
            if facets.is_reserved_field(name) or facets.is_reserved_field(attribute.field):
                logger.debug("Skipping attribute %r: reserved key field", name)
                continue

            is_key = facets.is_table_key(name)
            if is_key and not attribute.read_only:
                logger.debug("Attribute %r is part of the table key, marking read-only", name)

            definition = AttributeDefinition(
                name=name,
                field=attribute.field or name,
                label=facets.labels.get(name) or attribute.label,
                type=attribute.type,
                enum_array=attribute.enum_array,
                cast=attribute.cast,
                default=attribute.default,
                validate=attribute.validate,
                get=attribute.get,
                set=attribute.set,
                required=attribute.required,
                read_only=attribute.read_only or is_key,
                hide=attribute.hide,
                indexes=tuple(facets.indexes_for(name)),
            )

            if facets.is_facet(name):
                self._check_facet_type(definition, facets)

            # Only physical fields must be unique; a name may equal another attribute's field
            if definition.field in used_fields:
                collisions.append(
                    FieldCollision(name, definition.field, used_fields[definition.field])
                )
            else:
                used_fields[definition.field] = name

            translation_for_table[name] = definition.field
            translation_for_retrieval[definition.field] = name
            normalized[name] = Attribute(definition)

        missing = [
            f"{facet.type}: {facet.name}"
            for facet in facets.attributes
            if facet.name not in normalized
        ]
        if missing:
            logger.debug("Key facet template references missing attributes: %s", missing)
            raise InvalidKeyFacetTemplate(missing)

        if collisions:
            logger.debug("Field collisions in schema: %s", collisions)
            raise DuplicateFieldError(collisions)

        logger.debug("Normalized %d attributes", len(normalized))
        return {
            "attributes": normalized,
            "enums": {},
            "translation_for_table": translation_for_table,
            "translation_for_retrieval": translation_for_retrieval,
        }

    @staticmethod
    def _check_facet_type(definition: AttributeDefinition, facets: Facets) -> None:
        """Only scalar attributes may be composed into an index key."""
        declared = definition.type
        if isinstance(declared, (list, tuple)):
            return
        # Resolves the default type and rejects unknown names
        resolved, _ = Attribute._make_type(definition.name, declared, definition.enum_array)
        if resolved in VALID_FACET_TYPES:
            return

        assigned = [
            TABLE_INDEX_LABEL if facet.index == TABLE_INDEX else facet.index
            for facet in facets.indexes_for(definition.name)
        ]
        acceptable = ", ".join(facet_type.value for facet_type in VALID_FACET_TYPES)
        raise InvalidAttributeDefinition(
            f"Invalid facet definition: Facets must be one of the following: {acceptable}. "
            f'The attribute "{definition.name}" is defined as being type "{resolved.value}" '
            f"but is a facet of the the following indexes: {', '.join(assigned)}",
            attribute=definition.name,
            prop="type",
            value=resolved.value,
            expected=acceptable,
        )

    # =========================================================================
    # WHOLE-RECORD OPERATIONS
    # =========================================================================

    def get_labels(self) -> dict[str, str]:
        return {
            name: attribute.label
            for name, attribute in self.attributes.items()
            if attribute.label is not None
        }

    def get_read_only(self) -> list[str]:
        return [name for name, attribute in self.attributes.items() if attribute.read_only]

    def apply_attribute_getters(self, payload: Optional[Mapping[str, Any]] = None) -> dict:
        """Run each known attribute's ``get`` hook; other keys pass through."""
        return self._apply_hooks(payload, "get")

    def apply_attribute_setters(self, payload: Optional[Mapping[str, Any]] = None) -> dict:
        """Run each known attribute's ``set`` hook; other keys pass through."""
        return self._apply_hooks(payload, "set")

    def _apply_hooks(self, payload: Optional[Mapping[str, Any]], hook: str) -> dict:
        payload = dict(payload or {})
        record = dict(payload)
        for name, value in payload.items():
            attribute = self.attributes.get(name)
            if attribute is not None:
                record[name] = getattr(attribute, hook)(value, dict(payload))
        return record

    def translate_to_fields(self, payload: Optional[Mapping[str, Any]] = None) -> dict:
        """
        Rename a record's keys to their physical field names.

        Absent values and keys with no field translation are dropped.
        """
        record = {}
        for name, value in (payload or {}).items():
            field = self.translation_for_table.get(name)
            if field is None or value is None:
                continue
            record[field] = value
        return record

    def translate_from_fields(self, record: Optional[Mapping[str, Any]] = None) -> dict:
        """Rename a stored record's field names back to attribute names."""
        payload = {}
        for field, value in (record or {}).items():
            name = self.translation_for_retrieval.get(field)
            if name is not None:
                payload[name] = value
        return payload

    def check_create(self, payload: Optional[Mapping[str, Any]] = None) -> dict:
        """
        Validate a complete record for creation.

        Every attribute in the schema is resolved, whether or not the payload
        carries it, so defaults are filled and missing required values fail.

        Raises:
            CastError: If a value cannot be cast
            AttributeValidationError: If a value is invalid or missing
        """
        payload = payload or {}
        return {
            name: attribute.get_validate(payload.get(name))
            for name, attribute in self.attributes.items()
        }

    def check_update(self, payload: Optional[Mapping[str, Any]] = None) -> dict:
        """
        Validate a partial record for update.

        Attributes absent from the payload are left out of the result.

        Raises:
            ReadOnlyAttributeError: If the payload changes a read-only attribute
            CastError: If a value cannot be cast
            AttributeValidationError: If a value is invalid
        """
        payload = payload or {}
        record = {}
        for name, attribute in self.attributes.items():
            value = payload.get(name)
            if value is None:
                continue
            if attribute.read_only:
                raise ReadOnlyAttributeError(name)
            record[name] = attribute.get_validate(value)
        return record
