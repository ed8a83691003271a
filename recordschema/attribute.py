"""
Attribute - one named, typed field of a record.

An Attribute owns the whole per-value pipeline:

    raw value -> cast -> default -> type check + user validation
    stored value <- set hook          read value <- get hook

Everything configurable on an attribute is fixed at construction. Only the
values flowing through it vary.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, Optional, Union

from .errors import (
    AttributeValidationError,
    CastError,
    InvalidAttributeDefinition,
)
from .types import (
    CAST_TYPES,
    DEFAULT_ATTRIBUTE_TYPE,
    REASON_SEPARATOR,
    AttributeType,
    CastType,
)


Hook = Callable[[Any, dict], Any]

# Python types accepted for the scalar attribute types
_SCALAR_TYPES = {
    AttributeType.STRING: (str,),
    AttributeType.NUMBER: (int, float),
    AttributeType.BOOLEAN: (bool,),
}

_RADIX_PREFIXES = ("0x", "0o", "0b")
_NON_NUMERIC_WORDS = ("inf", "infinity", "nan")

# Definition keys as the model layer spells them
_DEFINITION_ALIASES = {
    "readOnly": "read_only",
    "enumArray": "enum_array",
}


# =============================================================================
# DEFINITIONS
# =============================================================================

@dataclass(frozen=True)
class AttributeDefinition:
    """
    Canonical attribute definition.

    Model authors may write an attribute as a bare type name ("string"), as
    a sequence of enum values (["open", "closed"]), or as a full mapping.
    ``from_raw`` folds all three into this one shape.
    """
    name: str
    field: Optional[str] = None
    label: Optional[str] = None
    type: Any = None
    enum_array: tuple = ()
    cast: Any = None
    default: Any = None
    validate: Any = None
    get: Any = None
    set: Any = None
    required: bool = False
    read_only: bool = False
    hide: bool = False
    indexes: tuple = ()

    @classmethod
    def from_raw(cls, name: Optional[str], raw: Any) -> AttributeDefinition:
        if isinstance(raw, AttributeDefinition):
            return raw if name is None else replace(raw, name=name)

        if raw is None or isinstance(raw, (str, AttributeType, list, tuple)):
            return cls(name=name, type=raw)

        if not isinstance(raw, Mapping):
            raise InvalidAttributeDefinition(
                f'Invalid definition for attribute "{name}". Expected a type name, '
                f"a sequence of enum values or a mapping, got {type(raw).__name__}",
                attribute=name,
                value=raw,
            )

        options = {}
        for key, value in raw.items():
            key = _DEFINITION_ALIASES.get(key, key)
            if key in cls.__dataclass_fields__:
                options[key] = value
        options.setdefault("name", name)
        options["required"] = bool(options.get("required"))
        options["read_only"] = bool(options.get("read_only"))
        options["hide"] = bool(options.get("hide"))
        options["enum_array"] = tuple(options.get("enum_array") or ())
        options["indexes"] = tuple(options.get("indexes") or ())
        return cls(**options)


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of checking one value against one attribute.

    Unpacks as ``(valid, reason)`` and is truthy when the value is valid.
    """
    valid: bool
    reason: str = ""
    attribute: Optional[str] = None

    def __iter__(self) -> Iterator:
        return iter((self.valid, self.reason))

    def __bool__(self) -> bool:
        return self.valid


# =============================================================================
# ATTRIBUTE
# =============================================================================

class Attribute:
    """
    A single field definition within a data model.

    ``name`` is the key callers use; ``field`` is the key the value is stored
    under. ``cast``, ``default``, ``validate``, ``get`` and ``set`` are
    callables fixed at construction:

        cast(value) -> value
        default() -> value
        validate(value) -> (valid, reason)
        get(value, payload) -> value
        set(value, payload) -> value

    Raises:
        InvalidAttributeDefinition: If cast, type, validate, get or set
            is not one of the accepted forms
    """

    def __init__(self, definition: Union[AttributeDefinition, Mapping[str, Any], None] = None):
        if not isinstance(definition, AttributeDefinition):
            raw = dict(definition or {})
            definition = AttributeDefinition.from_raw(raw.get("name"), raw)

        name = definition.name
        self.name = name
        self.field = definition.field or name
        self.label = definition.label
        self.read_only = bool(definition.read_only)
        self.required = bool(definition.required)
        self.hide = bool(definition.hide)
        self.indexes = tuple(definition.indexes)
        self.cast_type = self._make_cast_type(name, definition.cast)
        self.cast = self._make_cast(name, self.cast_type)
        self.default = self._make_default(definition.default)
        self.validate = self._make_validate(name, definition.validate)
        self.get = self._make_hook(name, "get", definition.get)
        self.set = self._make_hook(name, "set", definition.set)
        self.type, self.enum_array = self._make_type(
            name, definition.type, definition.enum_array
        )
        self._sealed = True

    def __setattr__(self, key: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            raise AttributeError(f"Attribute {self.name!r} cannot be modified after construction")
        super().__setattr__(key, value)

    def __repr__(self) -> str:
        return f"Attribute(name={self.name!r}, field={self.field!r}, type={self.type.value!r})"

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _make_hook(name: str, prop: str, hook: Optional[Hook]) -> Hook:
        if hook is None:
            return lambda value, payload=None: value
        if callable(hook):
            return hook
        raise InvalidAttributeDefinition(
            f'Invalid "{prop}" property for attribute {name}. '
            "Please ensure value is a function or undefined.",
            attribute=name,
            prop=prop,
            value=hook,
            expected="function or None",
        )

    @staticmethod
    def _make_cast_type(name: str, cast: Any) -> Optional[CastType]:
        if cast is None or cast in CAST_TYPES:
            return cast
        names = [cast_type.value for cast_type in CAST_TYPES]
        if cast in names:
            return CastType(cast)
        acceptable = ", ".join(names)
        raise InvalidAttributeDefinition(
            f'Invalid "cast" property for attribute: "{name}". '
            f"Acceptable types include {acceptable}",
            attribute=name,
            prop="cast",
            value=cast,
            expected=acceptable,
        )

    @staticmethod
    def _make_cast(name: str, cast_type: Optional[CastType]) -> Callable[[Any], Any]:
        if cast_type is None:
            return lambda value: value

        def absent() -> CastError:
            return CastError(
                name,
                f"Attribute {name} is undefined and cannot be cast to type {cast_type.value}",
            )

        if cast_type == CastType.STRING:
            def cast_string(value: Any) -> str:
                if value is None:
                    raise absent()
                if isinstance(value, str):
                    return value
                try:
                    return json.dumps(value, separators=(",", ":"))
                except (TypeError, ValueError) as err:
                    raise CastError(
                        name, f"Attribute {name} cannot be cast to type string: {err}"
                    ) from err
            return cast_string

        def cast_number(value: Any) -> Union[int, float]:
            if value is None:
                raise absent()
            if isinstance(value, bool):
                return int(value)
            if isinstance(value, (int, float)):
                return value
            try:
                result = _to_number(value)
            except (TypeError, ValueError) as err:
                raise CastError(
                    name,
                    f"Attribute {name} cannot be cast to type number. Doing so results in NaN",
                ) from err
            if math.isnan(result):
                raise CastError(
                    name,
                    f"Attribute {name} cannot be cast to type number. Doing so results in NaN",
                )
            return result
        return cast_number

    @staticmethod
    def _make_validate(name: str, validate: Any) -> Callable[[Any], tuple[bool, str]]:
        """
        Normalize the user's ``validate`` property to ``value -> (valid, reason)``.

        A callable may return a bool, a ``(valid, reason)`` pair, or a reason
        string (falsy meaning valid). A compiled pattern must match the value.
        """
        if validate is None:
            return lambda value: (True, "")

        if isinstance(validate, re.Pattern):
            def validate_pattern(value: Any) -> tuple[bool, str]:
                # Presence is the type check's concern
                if value is None:
                    return True, ""
                matched = validate.search(value if isinstance(value, str) else str(value))
                if matched is None:
                    return False, "Failed user defined regex"
                return True, ""
            return validate_pattern

        if callable(validate):
            def validate_callable(value: Any) -> tuple[bool, str]:
                result = validate(value)
                if isinstance(result, bool):
                    return result, "" if result else "Failed user defined validation"
                if isinstance(result, tuple) and len(result) == 2:
                    valid, reason = result
                    return bool(valid), reason or ""
                if result:
                    return False, str(result)
                return True, ""
            return validate_callable

        raise InvalidAttributeDefinition(
            f'Invalid "validate" property for attribute {name}. '
            "Please ensure value is a function, a compiled regular expression or undefined.",
            attribute=name,
            prop="validate",
            value=validate,
            expected="function, re.Pattern or None",
        )

    @staticmethod
    def _make_default(default: Any) -> Callable[[], Any]:
        if callable(default):
            return lambda: default()
        return lambda: default

    @staticmethod
    def _make_type(name: str, definition: Any, enum_array: tuple = ()) -> tuple[AttributeType, tuple]:
        if isinstance(definition, (list, tuple)):
            return AttributeType.ENUM, tuple(definition)

        if definition is None:
            attribute_type = DEFAULT_ATTRIBUTE_TYPE
        elif isinstance(definition, AttributeType):
            attribute_type = definition
        elif isinstance(definition, str) and definition in AttributeType.names():
            attribute_type = AttributeType(definition)
        else:
            acceptable = ", ".join(AttributeType.names())
            raise InvalidAttributeDefinition(
                f'Invalid "type" property for attribute: "{name}". '
                f"Acceptable types include {acceptable}",
                attribute=name,
                prop="type",
                value=definition,
                expected=acceptable,
            )

        if attribute_type == AttributeType.ENUM:
            return attribute_type, tuple(enum_array)
        return attribute_type, ()

    # -------------------------------------------------------------------------
    # Value pipeline
    # -------------------------------------------------------------------------

    def _is_type(self, value: Any) -> tuple[bool, str]:
        if value is None:
            return (not self.required), ("Value is required" if self.required else "")

        if self.type == AttributeType.ENUM:
            if any(_same_literal(item, value) for item in self.enum_array):
                return True, ""
            acceptable = ", ".join(str(item) for item in self.enum_array)
            return False, f"Value not found in set of acceptable values: {acceptable}"

        if self.type == AttributeType.ANY:
            return True, ""

        if self.type == AttributeType.MAP:
            if isinstance(value, Mapping):
                return True, ""
            return False, f'Expected value to be a mapping to fulfill attribute type "{self.type.value}"'

        if self.type == AttributeType.SET:
            if isinstance(value, Set) or _is_sequence(value):
                return True, ""
            return False, (
                f"Expected value to be a sequence or set to fulfill attribute type "
                f'"{self.type.value}"'
            )

        if self.type == AttributeType.LIST:
            if _is_sequence(value):
                return True, ""
            return False, f'Expected value to be a sequence to fulfill attribute type "{self.type.value}"'

        accepted = _SCALAR_TYPES[self.type]
        # bool is an int subclass; only BOOLEAN accepts it
        if isinstance(value, accepted) and (
            self.type == AttributeType.BOOLEAN or not isinstance(value, bool)
        ):
            return True, ""
        return False, (
            f'Received value of type "{type(value).__name__}", '
            f'expected value of type "{self.type.value}"'
        )

    def is_valid(self, value: Any) -> ValidationResult:
        """
        Check a value against the type rule and the user's validation.

        Never raises: an exception from either check becomes a failing
        result carrying the exception's message.
        """
        try:
            is_typed, type_error = self._is_type(value)
            is_valid, validation_error = self.validate(value)
        except Exception as err:
            return ValidationResult(False, str(err), self.name)
        reason = REASON_SEPARATOR.join(filter(None, [type_error, validation_error]))
        return ValidationResult(is_typed and is_valid, reason, self.name)

    def val(self, value: Any) -> Any:
        """
        Cast a raw value, falling back to the default when it is absent.

        Defaults are returned as produced, without casting.

        Raises:
            CastError: If the value cannot be cast, or is required, absent
                and has no default to cast from
        """
        if value is None:
            value = self.default()
            if value is None and self.required and self.cast_type is not None:
                raise CastError(
                    self.name,
                    f"Attribute {self.name} is undefined and cannot be cast to type "
                    f"{self.cast_type.value}; Value is required",
                )
            return value
        value = self.cast(value)
        if value is None:
            value = self.default()
        return value

    def get_validate(self, value: Any) -> Any:
        """
        Resolve and validate a raw value.

        Raises:
            CastError: If the value cannot be cast
            AttributeValidationError: If the resolved value is invalid
        """
        value = self.val(value)
        result = self.is_valid(value)
        if not result:
            raise AttributeValidationError(result)
        return value


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _same_literal(item: Any, value: Any) -> bool:
    # True == 1 in Python, but a boolean is never an enum's number
    return item == value and isinstance(item, bool) == isinstance(value, bool)


def _to_number(value: Any) -> Union[int, float]:
    """
    Numeric conversion following the storage layer's number grammar.

    Blank strings are 0, "Infinity" is the only spelling of infinity, and
    0x/0o/0b prefixes are accepted. Digit separators and the "inf"/"nan"
    spellings are not numbers.
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if "_" in text:
            raise ValueError(f"digit separators are not allowed: {value!r}")
        if text[:2].lower() in _RADIX_PREFIXES:
            return int(text, 0)
        unsigned = text.lstrip("+-")
        if unsigned.lower() in _NON_NUMERIC_WORDS and unsigned != "Infinity":
            raise ValueError(f"not a number: {value!r}")
        try:
            return int(text)
        except ValueError:
            return float(text)
    return float(value)
