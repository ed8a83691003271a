"""
Typed view of the key-facet description produced by the index layer.

The index layer decides which attributes compose which index keys. This
package only consumes that decision, in the shape:

    {
        "fields": [...],                      # composite key pseudo-fields
        "byIndex": {"": {"all": [...]}, ...}, # facets per index, "" is the table
        "byAttr": {"attr": [...]},            # index memberships per attribute
        "labels": {"attr": "label"},
        "attributes": [{"name": ..., "type": ...}],
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .types import TABLE_INDEX


@dataclass(frozen=True)
class Facet:
    """
    One attribute's role in one index key.

    ``type`` is the key part the attribute contributes to (e.g. "pk", "sk").
    """
    name: str
    index: str = TABLE_INDEX
    type: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Facet:
        return cls(
            name=raw.get("name", ""),
            index=raw.get("index", TABLE_INDEX),
            type=raw.get("type", ""),
        )


@dataclass(frozen=True)
class IndexFacets:
    """Facets belonging to a single index."""
    all: tuple[Facet, ...] = ()

    def names(self) -> list[str]:
        return [facet.name for facet in self.all]


@dataclass(frozen=True)
class Facets:
    fields: tuple[str, ...] = ()
    by_index: Mapping[str, IndexFacets] = field(default_factory=dict)
    by_attr: Mapping[str, tuple[Facet, ...]] = field(default_factory=dict)
    labels: Mapping[str, str] = field(default_factory=dict)
    attributes: tuple[Facet, ...] = ()

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]] = None) -> Facets:
        """Build from the index layer's mapping, camelCase or snake_case keys."""
        if raw is None:
            return cls()
        if isinstance(raw, Facets):
            return raw

        by_index_raw = _pick(raw, "byIndex", "by_index") or {}
        by_attr_raw = _pick(raw, "byAttr", "by_attr") or {}

        by_index = {
            index: IndexFacets(all=tuple(_to_facet(item) for item in (facets or {}).get("all", ())))
            for index, facets in by_index_raw.items()
        }
        by_attr = {
            name: tuple(_to_facet(item) for item in assigned)
            for name, assigned in by_attr_raw.items()
        }

        return cls(
            fields=tuple(raw.get("fields") or ()),
            by_index=by_index,
            by_attr=by_attr,
            labels=dict(raw.get("labels") or {}),
            attributes=tuple(_to_facet(item) for item in raw.get("attributes") or ()),
        )

    def is_reserved_field(self, name: Optional[str]) -> bool:
        return name is not None and name in self.fields

    def is_table_key(self, name: str) -> bool:
        """True if the attribute is part of the table's primary key."""
        table = self.by_index.get(TABLE_INDEX)
        return table is not None and name in table.names()

    def indexes_for(self, name: str) -> list[Facet]:
        return list(self.by_attr.get(name, ()))

    def is_facet(self, name: str) -> bool:
        """True if the attribute is composed into any index key."""
        return bool(self.by_attr.get(name))


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _to_facet(item: Any) -> Facet:
    if isinstance(item, Facet):
        return item
    return Facet.from_dict(item)
