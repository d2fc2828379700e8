# File: core/configuration.py
# Version: 1.0.0
# Last Modified: 2025-11-02
# Summary: Wire-compatible configuration model for the name builder.
"""Immutable configuration model shared with the runtime plugin.

The models mirror the JSON contract exchanged with the runtime plugin and the
import/export feature: camelCase keys on the wire, snake_case attributes in
Python, and sparse output where unset values are omitted rather than written
as ``null``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

MAX_CHAIN_DEPTH = 32


class ConfigurationError(ValueError):
    """Raised when a configuration is structurally unusable."""


def validation_summary(exc: ValidationError) -> str:
    """Flatten pydantic errors into one "loc: msg; loc: msg" line."""

    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(problems)


def _prune(value: Any) -> Any:
    """Drop empty strings and empty collections from a dumped payload."""

    if isinstance(value, dict):
        pruned = {}
        for key, item in value.items():
            cleaned = _prune(item)
            if cleaned is None or cleaned == "" or cleaned == [] or cleaned == {}:
                continue
            pruned[key] = cleaned
        return pruned
    if isinstance(value, list):
        return [_prune(item) for item in value]
    return value


def _add_unique(names: List[str], seen: set[str], name: Optional[str]) -> None:
    if not name or not name.strip():
        return
    key = name.strip().lower()
    if key in seen:
        return
    seen.add(key)
    names.append(name.strip())


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        """Return the sparse camelCase JSON representation."""

        return _prune(self.model_dump(by_alias=True, exclude_none=True))


class Condition(_WireModel):
    """Boolean predicate deciding whether a field is included."""

    field: Optional[str] = None
    operator: Optional[str] = None
    value: Optional[str] = None
    any_of: Optional[List["Condition"]] = Field(default=None, alias="anyOf")
    all_of: Optional[List["Condition"]] = Field(default=None, alias="allOf")

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def collect_attributes(self, names: List[str], seen: set[str]) -> None:
        _add_unique(names, seen, self.field)
        for child in self.any_of or ():
            child.collect_attributes(names, seen)
        for child in self.all_of or ():
            child.collect_attributes(names, seen)

    def referenced_attributes(self) -> Tuple[str, ...]:
        names: List[str] = []
        self.collect_attributes(names, set())
        return tuple(names)


class FieldSpec(_WireModel):
    """Resolution, formatting and decoration rules for one output segment."""

    field: Optional[str] = None
    type: Optional[str] = None
    format: Optional[str] = None
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    truncation_indicator: Optional[str] = Field(default=None, alias="truncationIndicator")
    default: Optional[str] = None
    alternate_field: Optional["FieldSpec"] = Field(default=None, alias="alternateField")
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    include_if: Optional[Condition] = Field(default=None, alias="includeIf")
    timezone_offset_hours: Optional[float] = Field(default=None, alias="timezoneOffsetHours")

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip().lower()
        return text or None

    @property
    def is_literal(self) -> bool:
        """True for segments that only carry literal text in ``default``."""

        return not (self.field or "").strip() and self.alternate_field is None

    def collect_attributes(self, names: List[str], seen: set[str]) -> None:
        for link in iter_fallback_chain(self):
            _add_unique(names, seen, link.field)
            if link.include_if is not None:
                link.include_if.collect_attributes(names, seen)

    def referenced_attributes(self) -> Tuple[str, ...]:
        names: List[str] = []
        self.collect_attributes(names, set())
        return tuple(names)


def iter_fallback_chain(spec: FieldSpec) -> Iterator[FieldSpec]:
    """Yield ``spec`` and its alternates in order, stopping at a revisit."""

    visited: set[int] = set()
    cursor: Optional[FieldSpec] = spec
    while cursor is not None and id(cursor) not in visited:
        visited.add(id(cursor))
        yield cursor
        cursor = cursor.alternate_field


def fallback_chain(spec: FieldSpec) -> Tuple[FieldSpec, ...]:
    return tuple(iter_fallback_chain(spec))


class PluginConfiguration(_WireModel):
    """Root configuration published to the runtime plugin."""

    entity: Optional[str] = None
    target_field: str = Field(default="name", alias="targetField")
    fields: List[FieldSpec] = Field(default_factory=list)
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    enable_tracing: Optional[bool] = Field(default=None, alias="enableTracing")
    pattern: Optional[str] = None

    @field_validator("target_field", mode="before")
    @classmethod
    def _default_target_field(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "name"
        return value

    @model_validator(mode="after")
    def _check_chain_depth(self) -> "PluginConfiguration":
        for index, spec in enumerate(self.fields):
            depth = len(fallback_chain(spec))
            if depth > MAX_CHAIN_DEPTH:
                raise ConfigurationError(
                    f"Field #{index + 1} ('{spec.field or ''}') has {depth} alternate links; "
                    f"the limit is {MAX_CHAIN_DEPTH}."
                )
        return self

    @property
    def tracing_enabled(self) -> bool:
        return bool(self.enable_tracing)

    def effective_fields(self) -> Tuple[FieldSpec, ...]:
        """Return the ordered field list; ``fields`` wins over ``pattern``."""

        if self.fields:
            return tuple(self.fields)
        if self.pattern and self.pattern.strip():
            from core.pattern_parser import parse_pattern  # Local import to avoid circular dependency

            return tuple(parse_pattern(self.pattern))
        return ()

    def referenced_attributes(self) -> Tuple[str, ...]:
        names: List[str] = []
        seen: set[str] = set()
        for spec in self.effective_fields():
            spec.collect_attributes(names, seen)
        return tuple(names)

    def to_wire(self) -> Dict[str, Any]:
        payload = super().to_wire()
        # The runtime expects the field list even when it is empty.
        payload["fields"] = [spec.to_wire() for spec in self.fields]
        ordered: Dict[str, Any] = {}
        for key in ("entity", "targetField", "fields", "maxLength", "enableTracing", "pattern"):
            if key in payload:
                ordered[key] = payload[key]
        return ordered


def apply_default_timezone(configuration: PluginConfiguration, offset_hours: Optional[float]) -> PluginConfiguration:
    """Fill ``timezoneOffsetHours`` on date fields that do not set one."""

    if offset_hours is None:
        return configuration

    updated: List[FieldSpec] = []
    changed = False
    for spec in configuration.fields:
        if spec.type in {"date", "datetime"} and spec.timezone_offset_hours is None:
            spec = spec.model_copy(update={"timezone_offset_hours": offset_hours})
            changed = True
        updated.append(spec)

    if not changed:
        return configuration
    logger.debug("[configuration] Applied default timezone offset %s to date fields", offset_hours)
    return configuration.model_copy(update={"fields": updated})


Condition.model_rebuild()
FieldSpec.model_rebuild()
PluginConfiguration.model_rebuild()


__all__ = [
    "Condition",
    "ConfigurationError",
    "FieldSpec",
    "MAX_CHAIN_DEPTH",
    "PluginConfiguration",
    "apply_default_timezone",
    "fallback_chain",
    "iter_fallback_chain",
    "validation_summary",
]
