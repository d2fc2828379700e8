"""Parser for legacy single-string naming patterns.

Older configurations describe the name as one string instead of a field
list, for example ``"createdon:date:yyyy-MM-dd | ownerid - statuscode"``.
Field tokens are runs of letters, digits and underscores written as
``field[:type[:format]]``; once a token has two colons the format may also
contain ``- : / . '`` characters. Quoted text and every other character is
literal output.
"""

from __future__ import annotations

from typing import List, Optional

from core.configuration import FieldSpec

_TYPE_ALIASES = {"picklist": "optionset"}


def _is_field_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _is_format_char(char: str) -> bool:
    return char.isalnum() or char in "-:/.'_"


def _field_part(token: str) -> FieldSpec:
    segments = token.split(":")
    name = segments[0].strip()
    field_type: Optional[str] = None
    pattern: Optional[str] = None
    if len(segments) > 1 and segments[1].strip():
        field_type = segments[1].strip().lower()
        field_type = _TYPE_ALIASES.get(field_type, field_type)
    if len(segments) > 2:
        pattern = ":".join(segments[2:]).strip() or None
    return FieldSpec(field=name, type=field_type, format=pattern)


def _literal_part(text: str) -> FieldSpec:
    return FieldSpec(default=text)


def parse_pattern(pattern: Optional[str]) -> List[FieldSpec]:
    """Convert a pattern string into an ordered list of field specifications."""

    parts: List[FieldSpec] = []
    if not pattern or not pattern.strip():
        return parts

    field_buffer: List[str] = []
    literal_buffer: List[str] = []
    quote: Optional[str] = None
    colons = 0
    in_field = False

    def flush_field() -> None:
        nonlocal colons
        if field_buffer:
            parts.append(_field_part("".join(field_buffer)))
            field_buffer.clear()
        colons = 0

    def flush_literal() -> None:
        if literal_buffer:
            parts.append(_literal_part("".join(literal_buffer)))
            literal_buffer.clear()

    for char in pattern:
        if quote is not None:
            if char == quote:
                flush_literal()
                quote = None
            else:
                literal_buffer.append(char)
            continue

        # A quote inside a format segment belongs to the format.
        if char in "'\"" and not (in_field and colons >= 2 and char == "'"):
            flush_field()
            quote = char
            in_field = False
            continue

        if in_field and char == ":":
            colons += 1
            field_buffer.append(char)
            continue

        accepted = _is_format_char(char) if colons >= 2 else _is_field_char(char)
        if in_field and accepted:
            field_buffer.append(char)
        elif in_field:
            flush_field()
            literal_buffer.append(char)
            in_field = False
        elif _is_field_char(char):
            flush_literal()
            field_buffer.append(char)
            colons = 0
            in_field = True
        else:
            literal_buffer.append(char)

    flush_field()
    flush_literal()
    return parts


__all__ = ["parse_pattern"]
