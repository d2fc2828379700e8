"""Attribute metadata supplied by the caller.

Metadata is only consulted to infer the type category of a field that does
not declare one, and to render friendly labels in behaviour summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Protocol

# Attribute categories reported by the data service mapped onto field types.
_TYPE_BY_CATEGORY: Dict[str, str] = {
    "string": "string",
    "memo": "string",
    "date": "date",
    "datetime": "datetime",
    "boolean": "boolean",
    "integer": "number",
    "bigint": "number",
    "decimal": "number",
    "double": "number",
    "money": "currency",
    "picklist": "optionset",
    "state": "optionset",
    "status": "optionset",
    "multiselectpicklist": "optionset",
    "lookup": "lookup",
    "customer": "lookup",
    "owner": "lookup",
}


def type_for_category(category: Optional[str]) -> str:
    """Map an attribute category onto a field type; unknown ones are strings."""

    if not category:
        return "string"
    return _TYPE_BY_CATEGORY.get(category.strip().lower(), "string")


@dataclass(frozen=True)
class AttributeMetadata:
    logical_name: str
    attribute_type: str
    display_name: Optional[str] = None
    options: Mapping[int, str] = field(default_factory=dict)

    @property
    def field_type(self) -> str:
        return type_for_category(self.attribute_type)


class MetadataLookup(Protocol):
    """Contract for attribute metadata collaborators."""

    def get(self, logical_name: str) -> Optional[AttributeMetadata]:
        """Return metadata for the attribute or ``None`` when unknown."""


class MetadataCatalog:
    """In-memory metadata lookup keyed case-insensitively by logical name."""

    def __init__(self, attributes: Iterable[AttributeMetadata] = ()) -> None:
        self._attributes = {meta.logical_name.lower(): meta for meta in attributes}

    def get(self, logical_name: str) -> Optional[AttributeMetadata]:
        if not logical_name:
            return None
        return self._attributes.get(logical_name.lower())

    def field_type(self, logical_name: str) -> Optional[str]:
        meta = self.get(logical_name)
        return meta.field_type if meta else None

    def display_name(self, logical_name: str) -> Optional[str]:
        meta = self.get(logical_name)
        return meta.display_name if meta else None

    def option_label(self, logical_name: str, code: int) -> Optional[str]:
        meta = self.get(logical_name)
        if meta is None:
            return None
        return meta.options.get(code)

    def __len__(self) -> int:
        return len(self._attributes)


__all__ = ["AttributeMetadata", "MetadataCatalog", "MetadataLookup", "type_for_category"]
