"""Human readable summaries of field behaviour.

Used by the describe endpoint so authors can check what a field will do
without running a preview, e.g.::

    Use 'Account Name (name)' when not blank.
    If blank -> use 'Full Name (fullname)'.
    If blank -> default to "Unknown".
    Condition: Status (statuscode) equals "Active (1)"
"""

from __future__ import annotations

from typing import List, Optional

from core.configuration import Condition, FieldSpec
from core.metadata import MetadataLookup


def field_label(logical_name: Optional[str], metadata: Optional[MetadataLookup] = None) -> str:
    """Return ``"Display (logical)"`` or just the logical name."""

    if not logical_name or not logical_name.strip():
        return "field"

    meta = metadata.get(logical_name) if metadata is not None else None
    friendly = meta.display_name if meta is not None else None
    if not friendly or not friendly.strip() or friendly.lower() == logical_name.lower():
        return logical_name
    return f"{friendly} ({logical_name})"


def option_label(logical_name: Optional[str], raw_value: Optional[str], metadata: Optional[MetadataLookup] = None) -> Optional[str]:
    """Render an option code as ``"Label (code)"`` when the metadata knows it."""

    if not raw_value or not raw_value.strip() or metadata is None or not logical_name:
        return raw_value
    try:
        code = int(raw_value.strip())
    except ValueError:
        return raw_value

    meta = metadata.get(logical_name)
    label = meta.options.get(code) if meta is not None else None
    if label and label.strip():
        return f"{label} ({code})"
    return raw_value


def describe_condition(condition: Optional[Condition], metadata: Optional[MetadataLookup] = None) -> Optional[str]:
    if condition is None:
        return None

    segments: List[str] = []
    if condition.field and condition.field.strip() and condition.operator and condition.operator.strip():
        comparison = condition.operator
        if condition.value and condition.value.strip():
            comparison += f' "{option_label(condition.field, condition.value, metadata)}"'
        segments.append(f"{field_label(condition.field, metadata)} {comparison}".strip())

    for keyword, children in (("all of", condition.all_of), ("any of", condition.any_of)):
        described = [text for text in (describe_condition(child, metadata) for child in children or ()) if text]
        if described:
            segments.append(f"{keyword} ({'; '.join(described)})")

    return "; ".join(segments) if segments else None


def _fallback_lines(spec: FieldSpec, metadata: Optional[MetadataLookup]) -> List[str]:
    lines: List[str] = []
    visited: set[int] = set()
    cursor: Optional[FieldSpec] = spec

    while cursor is not None and id(cursor) not in visited:
        visited.add(id(cursor))
        alternate = cursor.alternate_field

        if alternate is not None and alternate.field and alternate.field.strip():
            lines.append(f"If blank -> use '{field_label(alternate.field, metadata)}'.")
            cursor = alternate
            continue

        if alternate is not None and alternate.default and alternate.default.strip():
            lines.append(f'If blank -> default to "{alternate.default}".')
        elif cursor.default and cursor.default.strip():
            lines.append(f'If blank -> default to "{cursor.default}".')
        else:
            lines.append("If blank -> leave empty.")
        break

    if spec.alternate_field is not None and spec.default and spec.default.strip():
        lines.append(f'Additional default detected -> "{spec.default}".')
    return lines


def describe_field(spec: Optional[FieldSpec], metadata: Optional[MetadataLookup] = None) -> str:
    """Summarise how ``spec`` resolves, one statement per line."""

    if spec is None:
        return "No field selected."

    if spec.is_literal and spec.default:
        lines = [f'Literal text "{spec.default}".']
    else:
        primary = field_label(spec.field, metadata) if spec.field and spec.field.strip() else "primary field"
        lines = [f"Use '{primary}' when not blank."]
        lines.extend(_fallback_lines(spec, metadata))

    condition_text = describe_condition(spec.include_if, metadata)
    if condition_text:
        lines.append("Condition: " + condition_text)
    return "\n".join(lines)


__all__ = ["describe_condition", "describe_field", "field_label", "option_label"]
