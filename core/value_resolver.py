# File: core/value_resolver.py
# Version: 1.0.0
# Last Modified: 2025-11-02
# Summary: Resolves one field specification against a record.
"""Field value resolution for the name builder engine."""

from __future__ import annotations

import logging
from typing import Optional

from core.configuration import FieldSpec
from core.diagnostics import CYCLIC_CHAIN, FORMAT_FALLBACK, TYPE_MISMATCH, Diagnostics, report
from core.formatting import (
    DEFAULT_DATE_FORMAT,
    FormatError,
    format_datetime,
    format_money,
    format_number,
    number_text,
    shift_hours,
)
from core.metadata import MetadataLookup
from core.records import (
    AttributeValue,
    BooleanValue,
    DateTimeValue,
    MoneyValue,
    NumberValue,
    OptionValue,
    RecordView,
    ReferenceValue,
    TextValue,
    implied_type,
)
from core.truncation import truncate

logger = logging.getLogger(__name__)


def effective_type(spec: FieldSpec, record: Optional[RecordView], metadata: Optional[MetadataLookup] = None) -> str:
    """Return the type category used to render ``spec`` without modifying it."""

    if spec.type:
        return spec.type

    name = (spec.field or "").strip()
    if metadata is not None and name:
        meta = metadata.get(name)
        if meta is not None:
            return meta.field_type

    value = record.get(name) if record is not None else None
    if value is not None:
        return implied_type(value)
    return "string"


def default_text(value: AttributeValue) -> str:
    """Plain textual conversion used when no type-specific rendering applies."""

    if isinstance(value, TextValue):
        return value.text
    if isinstance(value, NumberValue):
        return number_text(value.value)
    if isinstance(value, MoneyValue):
        return number_text(value.amount)
    if isinstance(value, BooleanValue):
        return "True" if value.flag else "False"
    if isinstance(value, DateTimeValue):
        return format_datetime(value.instant, DEFAULT_DATE_FORMAT)
    if isinstance(value, ReferenceValue):
        return value.name if value.name else value.id
    if isinstance(value, OptionValue):
        return str(value.code)
    return str(value)


def _mismatch(spec: FieldSpec, field_type: str, value: AttributeValue, diagnostics: Optional[Diagnostics]) -> str:
    report(
        diagnostics,
        TYPE_MISMATCH,
        f"Field '{spec.field}' is typed '{field_type}' but holds a {type(value).__name__}; using its plain text.",
        field=spec.field,
    )
    return default_text(value)


def _render_date(spec: FieldSpec, value: DateTimeValue, diagnostics: Optional[Diagnostics]) -> str:
    try:
        shifted = shift_hours(value.instant, spec.timezone_offset_hours)
    except (OverflowError, ValueError):
        report(
            diagnostics,
            FORMAT_FALLBACK,
            f"Shifting by {spec.timezone_offset_hours} hours leaves the supported date range; "
            f"rendering the unshifted value as {DEFAULT_DATE_FORMAT}.",
            field=spec.field,
        )
        return format_datetime(value.instant, DEFAULT_DATE_FORMAT)

    if spec.format and spec.format.strip():
        try:
            return format_datetime(shifted, spec.format)
        except FormatError as exc:
            report(
                diagnostics,
                FORMAT_FALLBACK,
                f"Date format '{spec.format}' could not be applied ({exc}); using {DEFAULT_DATE_FORMAT}.",
                field=spec.field,
            )
    return format_datetime(shifted, DEFAULT_DATE_FORMAT)


def render_value(
    spec: FieldSpec,
    value: AttributeValue,
    record: RecordView,
    field_type: str,
    diagnostics: Optional[Diagnostics] = None,
    metadata: Optional[MetadataLookup] = None,
) -> str:
    """Stringify ``value`` for ``spec`` according to ``field_type``.

    Option labels come from the record first, then the value itself, then
    the attribute metadata; the numeric code is the last resort.
    """

    name = spec.field

    if field_type == "lookup":
        if isinstance(value, ReferenceValue):
            return value.name if value.name else value.id
        return _mismatch(spec, field_type, value, diagnostics)

    if field_type == "optionset":
        if isinstance(value, OptionValue):
            label = record.label(name)
            if label is None:
                label = value.label
            if label is None and metadata is not None and name:
                meta = metadata.get(name)
                if meta is not None:
                    label = meta.options.get(value.code)
            return label if label is not None else str(value.code)
        return _mismatch(spec, field_type, value, diagnostics)

    if field_type == "currency":
        if isinstance(value, MoneyValue):
            return format_money(name, value.amount, record, spec, diagnostics=diagnostics)
        if isinstance(value, NumberValue):
            return format_money(name, value.value, record, spec, diagnostics=diagnostics)
        return _mismatch(spec, field_type, value, diagnostics)

    if field_type in {"date", "datetime"}:
        if isinstance(value, DateTimeValue):
            return _render_date(spec, value, diagnostics)
        return _mismatch(spec, field_type, value, diagnostics)

    if field_type == "number":
        if isinstance(value, NumberValue):
            return format_number(value.value, spec.format, diagnostics=diagnostics, field=name)
        if isinstance(value, MoneyValue):
            return format_number(value.amount, spec.format, diagnostics=diagnostics, field=name)
        if isinstance(value, OptionValue):
            return format_number(value.code, spec.format, diagnostics=diagnostics, field=name)
        return _mismatch(spec, field_type, value, diagnostics)

    return default_text(value)


def resolve_text(
    spec: FieldSpec,
    record: RecordView,
    metadata: Optional[MetadataLookup] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """Resolve the bare text for ``spec``; prefix and suffix are not applied.

    Alternates are followed when the field is blank or has no value on the
    record. The link that supplies a value is rendered and clipped with its
    own ``maxLength``; a chain that revisits a link resolves to ``""``.
    """

    visited: set[int] = set()
    cursor: Optional[FieldSpec] = spec

    while cursor is not None:
        if id(cursor) in visited:
            report(
                diagnostics,
                CYCLIC_CHAIN,
                f"Alternate chain starting at '{spec.field or ''}' loops back to '{cursor.field or ''}'.",
                field=spec.field,
            )
            return ""
        visited.add(id(cursor))

        name = (cursor.field or "").strip()
        if not name or not record.has_value(name):
            if cursor.alternate_field is not None:
                cursor = cursor.alternate_field
                continue
            return cursor.default or ""

        value = record.get(name)
        field_type = effective_type(cursor, record, metadata)
        text = render_value(cursor, value, record, field_type, diagnostics, metadata)
        if cursor.max_length is not None and len(text) > cursor.max_length:
            text = truncate(text, cursor.max_length, cursor.truncation_indicator)
        return text

    return ""


__all__ = ["default_text", "effective_type", "render_value", "resolve_text"]
