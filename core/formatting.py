# File: core/formatting.py
# Version: 1.0.0
# Last Modified: 2025-11-02
# Summary: Number, currency and date rendering compatible with the runtime plugin.
"""Render typed values the way the runtime plugin does.

Format patterns in published configurations are .NET format strings
evaluated with the invariant culture, so the previews produced here follow
the same rules: custom numeric patterns (``0``, ``#``, ``,``, ``.``, ``%``,
sections separated by ``;``), the common standard numeric specifiers, the
``K``/``M``/``B`` scale suffix convention, and custom or standard date/time
patterns.

Every public helper either returns text or raises :class:`FormatError`;
:func:`format_number` and :func:`format_money` never raise and fall back to
the unformatted value instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import List, Optional, Tuple, Union

from core.diagnostics import FORMAT_FALLBACK, Diagnostics, report

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

DEFAULT_DATE_FORMAT = "yyyy-MM-dd"
DEFAULT_MONEY_FORMAT = "#,##0.00"
DEFAULT_SCALED_FORMAT = "0.##"

_SCALE_TOKENS: Tuple[Tuple[str, Decimal], ...] = (
    ("B", Decimal(1_000_000_000)),
    ("M", Decimal(1_000_000)),
    ("K", Decimal(1_000)),
)


class FormatError(ValueError):
    """Raised when a format pattern cannot be applied to a value."""


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise FormatError(f"Cannot format non-finite number {value!r}")
        return Decimal(repr(value)).normalize()
    return Decimal(value)


def number_text(value: Number) -> str:
    """Default numeric-to-text conversion (invariant, no grouping)."""

    try:
        number = to_decimal(value)
    except FormatError:
        return str(value)
    text = format(number, "f")
    return "0" if text in {"-0", "-0.0"} else text


# ---------------------------------------------------------------------------
# Numeric patterns
# ---------------------------------------------------------------------------

_STANDARD_NUMERIC = re.compile(r"^([A-Za-z])(\d{0,2})$")


@dataclass
class _Token:
    kind: str
    text: str = ""


def _split_sections(pattern: str) -> List[str]:
    sections: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if quote:
            current.append(char)
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
            current.append(char)
        elif char == "\\" and index + 1 < len(pattern):
            current.append(pattern[index : index + 2])
            index += 1
        elif char == ";":
            sections.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    sections.append("".join(current))
    return sections[:3]


def _tokenise_numeric(section: str) -> List[_Token]:
    tokens: List[_Token] = []
    seen_point = False
    index = 0
    while index < len(section):
        char = section[index]
        if char == "\\":
            if index + 1 >= len(section):
                raise FormatError("Numeric pattern ends with an escape character")
            tokens.append(_Token("literal", section[index + 1]))
            index += 2
            continue
        if char in "'\"":
            end = section.find(char, index + 1)
            if end < 0:
                raise FormatError("Numeric pattern has an unterminated quoted literal")
            tokens.append(_Token("literal", section[index + 1 : end]))
            index = end + 1
            continue
        if char == "0":
            tokens.append(_Token("zero"))
        elif char == "#":
            tokens.append(_Token("digit"))
        elif char == ".":
            if not seen_point:
                tokens.append(_Token("point"))
                seen_point = True
        elif char == ",":
            tokens.append(_Token("comma"))
        elif char == "%":
            tokens.append(_Token("percent", "%"))
        elif char == "‰":
            tokens.append(_Token("permille", "‰"))
        elif char in "eE" and index + 1 < len(section) and section[index + 1] in "+-0":
            raise FormatError("Scientific notation is not supported in custom numeric patterns")
        else:
            tokens.append(_Token("literal", char))
        index += 1
    return tokens


@dataclass
class _NumericLayout:
    integer: List[_Token]
    fraction: List[_Token]
    has_point: bool
    min_integer_digits: int
    min_fraction_digits: int
    max_fraction_digits: int
    grouping: bool
    scale_divisions: int
    multiplier: Decimal

    @property
    def has_placeholders(self) -> bool:
        return any(token.kind in {"zero", "digit"} for token in self.integer + self.fraction)


def _layout(section: str) -> _NumericLayout:
    tokens = _tokenise_numeric(section)
    point_index = next((i for i, token in enumerate(tokens) if token.kind == "point"), None)
    integer = tokens if point_index is None else tokens[:point_index]
    fraction = [] if point_index is None else tokens[point_index + 1 :]

    placeholders = [i for i, token in enumerate(integer) if token.kind in {"zero", "digit"}]
    first_zero = next((n for n, i in enumerate(placeholders) if integer[i].kind == "zero"), None)
    min_integer = 0 if first_zero is None else len(placeholders) - first_zero

    grouping = False
    scale_divisions = 0
    if placeholders:
        first, last = placeholders[0], placeholders[-1]
        for i, token in enumerate(integer):
            if token.kind != "comma":
                continue
            if first < i < last:
                grouping = True
            elif i > last:
                scale_divisions += 1

    fraction_slots = [token.kind for token in fraction if token.kind in {"zero", "digit"}]
    last_zero = max((n for n, kind in enumerate(fraction_slots) if kind == "zero"), default=-1)

    multiplier = Decimal(1)
    for token in tokens:
        if token.kind == "percent":
            multiplier *= 100
        elif token.kind == "permille":
            multiplier *= 1000

    return _NumericLayout(
        integer=integer,
        fraction=fraction,
        has_point=point_index is not None,
        min_integer_digits=min_integer,
        min_fraction_digits=last_zero + 1,
        max_fraction_digits=len(fraction_slots),
        grouping=grouping,
        scale_divisions=scale_divisions,
        multiplier=multiplier,
    )


def _round(value: Decimal, places: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = 80
        ctx.rounding = ROUND_HALF_UP
        return value.quantize(Decimal(1).scaleb(-places))


def _scaled_magnitude(value: Decimal, layout: _NumericLayout) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = 80
        magnitude = abs(value) * layout.multiplier
        if layout.scale_divisions:
            magnitude = magnitude / (Decimal(1000) ** layout.scale_divisions)
    return _round(magnitude, layout.max_fraction_digits)


def _render_section(magnitude: Decimal, layout: _NumericLayout) -> str:
    digits = format(magnitude, "f")
    integer_digits, _, fraction_digits = digits.partition(".")
    fraction_digits = fraction_digits[: layout.max_fraction_digits]
    while len(fraction_digits) > layout.min_fraction_digits and fraction_digits.endswith("0"):
        fraction_digits = fraction_digits[:-1]

    if integer_digits == "0":
        integer_digits = ""
    if len(integer_digits) < layout.min_integer_digits:
        integer_digits = integer_digits.rjust(layout.min_integer_digits, "0")

    output: List[str] = []
    slots = [i for i, token in enumerate(layout.integer) if token.kind in {"zero", "digit"}]
    assigned = {}
    remaining = len(integer_digits)
    for position, token_index in enumerate(reversed(slots)):
        is_leftmost = position == len(slots) - 1
        if is_leftmost:
            assigned[token_index] = (0, remaining)
            remaining = 0
        elif remaining > 0:
            assigned[token_index] = (remaining - 1, remaining)
            remaining -= 1

    for index, token in enumerate(layout.integer):
        if token.kind in {"zero", "digit"}:
            start, end = assigned.get(index, (0, 0))
            for offset in range(start, end):
                output.append(integer_digits[offset])
                from_right = len(integer_digits) - offset - 1
                if layout.grouping and from_right > 0 and from_right % 3 == 0:
                    output.append(",")
        elif token.kind in {"literal", "percent", "permille"}:
            output.append(token.text)

    if layout.has_point and fraction_digits:
        output.append(".")
    slot = 0
    for token in layout.fraction:
        if token.kind in {"zero", "digit"}:
            if slot < len(fraction_digits):
                output.append(fraction_digits[slot])
            slot += 1
        elif token.kind in {"literal", "percent", "permille"}:
            output.append(token.text)

    return "".join(output)


def _format_custom(value: Decimal, pattern: str) -> str:
    sections = _split_sections(pattern)
    layouts = [_layout(section) if section else None for section in sections]
    positive = layouts[0]
    if positive is None:
        raise FormatError("Numeric pattern has an empty first section")

    negative = value < 0
    layout = positive
    use_sign = negative
    if negative and len(layouts) > 1 and layouts[1] is not None:
        layout = layouts[1]
        use_sign = False

    magnitude = _scaled_magnitude(value, layout)
    if magnitude == 0:
        use_sign = False
        if len(layouts) > 2 and layouts[2] is not None:
            layout = layouts[2]
            magnitude = _scaled_magnitude(Decimal(0), layout)
        elif negative and layout is not positive and len(layouts) > 1:
            layout = positive
            magnitude = _scaled_magnitude(Decimal(0), layout)

    text = _render_section(magnitude, layout)
    return f"-{text}" if use_sign else text


def _format_standard(value: Decimal, specifier: str, precision_text: str) -> str:
    precision = int(precision_text) if precision_text else None
    kind = specifier.upper()
    if kind == "N":
        places = 2 if precision is None else precision
        return _format_custom(value, "#,##0" + ("." + "0" * places if places else ""))
    if kind == "F":
        places = 2 if precision is None else precision
        return _format_custom(value, "0" + ("." + "0" * places if places else ""))
    if kind == "P":
        places = 2 if precision is None else precision
        scaled = value * 100
        return _format_custom(scaled, "#,##0" + ("." + "0" * places if places else "")) + " %"
    if kind == "D":
        if value != value.to_integral_value():
            raise FormatError("'D' format requires an integral value")
        digits = str(abs(int(value))).rjust(precision or 1, "0")
        return f"-{digits}" if value < 0 else digits
    if kind == "E":
        places = 6 if precision is None else precision
        with localcontext() as ctx:
            ctx.rounding = ROUND_HALF_UP
            rendered = format(value, f".{places}E")
        mantissa, _, exponent = rendered.partition("E")
        sign = "-" if exponent.startswith("-") else "+"
        digits = exponent.lstrip("+-").rjust(3, "0")
        marker = "E" if specifier == "E" else "e"
        return f"{mantissa}{marker}{sign}{digits}"
    if kind == "G":
        return number_text(value)
    raise FormatError(f"Unsupported standard numeric format '{specifier}{precision_text}'")


def apply_numeric_pattern(value: Number, pattern: str) -> str:
    """Apply a .NET numeric format string; raises :class:`FormatError`."""

    number = to_decimal(value)
    standard = _STANDARD_NUMERIC.match(pattern)
    try:
        if standard:
            return _format_standard(number, standard.group(1), standard.group(2))
        return _format_custom(number, pattern)
    except InvalidOperation as exc:
        raise FormatError(f"Cannot apply numeric format '{pattern}'") from exc


def detect_scale(pattern: str) -> Optional[Tuple[Decimal, str, str]]:
    """Return ``(divisor, suffix, residual pattern)`` for K/M/B patterns."""

    if not pattern or not pattern.strip():
        return None
    lowered = pattern.lower()
    for token, divisor in _SCALE_TOKENS:
        index = lowered.find(token.lower())
        if index >= 0:
            return divisor, pattern[index], pattern[:index] + pattern[index + 1 :]
    return None


def format_number(
    value: Number,
    pattern: Optional[str],
    *,
    diagnostics: Optional[Diagnostics] = None,
    field: Optional[str] = None,
) -> str:
    """Render a number with an optional pattern, never raising."""

    if not pattern or not pattern.strip():
        return number_text(value)

    try:
        scale = detect_scale(pattern)
        if scale is not None:
            divisor, suffix, residual = scale
            numeric_pattern = residual if residual.strip() else DEFAULT_SCALED_FORMAT
            with localcontext() as ctx:
                ctx.prec = 80
                scaled = to_decimal(value) / divisor
            return apply_numeric_pattern(scaled, numeric_pattern) + suffix
        return apply_numeric_pattern(value, pattern)
    except (FormatError, InvalidOperation, ValueError, OverflowError) as exc:
        report(
            diagnostics,
            FORMAT_FALLBACK,
            f"Numeric format '{pattern}' could not be applied ({exc}); using the raw value.",
            field=field,
        )
        return number_text(value)


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------


def apply_currency_symbol(text: str, symbol: Optional[str]) -> str:
    """Inject ``symbol`` into formatted money text unless it is already there."""

    if not text or not text.strip() or not symbol or not symbol.strip():
        return text

    trimmed = text.strip()
    if symbol in trimmed:
        return trimmed
    if trimmed.startswith("-"):
        return "-" + symbol + trimmed[1:]
    if trimmed.startswith("(") and trimmed.endswith(")"):
        return "(" + apply_currency_symbol(trimmed[1:-1], symbol) + ")"
    return symbol + trimmed


def format_money(field_name: Optional[str], amount: Number, record, spec, *, diagnostics: Optional[Diagnostics] = None) -> str:
    """Render a money amount for ``spec``, injecting the record's currency symbol.

    Precedence: an explicit format on the field, then the record's
    precomputed label, then two fixed decimals with grouping.
    """

    formatted: Optional[str] = None
    pattern = getattr(spec, "format", None)
    if pattern and pattern.strip():
        formatted = format_number(amount, pattern, diagnostics=diagnostics, field=field_name)
    else:
        label = record.label(field_name) if record is not None else None
        if label is not None:
            formatted = label

    if formatted is None or not formatted.strip():
        try:
            formatted = apply_numeric_pattern(amount, DEFAULT_MONEY_FORMAT)
        except FormatError:
            formatted = number_text(amount)

    symbol = record.currency_symbol() if record is not None else None
    if symbol:
        formatted = apply_currency_symbol(formatted, symbol)
    return formatted


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_STANDARD_DATE_PATTERNS = {
    "d": "MM/dd/yyyy",
    "D": "dddd, dd MMMM yyyy",
    "f": "dddd, dd MMMM yyyy HH:mm",
    "F": "dddd, dd MMMM yyyy HH:mm:ss",
    "g": "MM/dd/yyyy HH:mm",
    "G": "MM/dd/yyyy HH:mm:ss",
    "m": "MMMM dd",
    "M": "MMMM dd",
    "o": "yyyy'-'MM'-'dd'T'HH':'mm':'ss'.'fffffffK",
    "O": "yyyy'-'MM'-'dd'T'HH':'mm':'ss'.'fffffffK",
    "r": "ddd, dd MMM yyyy HH':'mm':'ss 'GMT'",
    "R": "ddd, dd MMM yyyy HH':'mm':'ss 'GMT'",
    "s": "yyyy'-'MM'-'dd'T'HH':'mm':'ss",
    "t": "HH:mm",
    "T": "HH:mm:ss",
    "u": "yyyy'-'MM'-'dd HH':'mm':'ss'Z'",
    "y": "yyyy MMMM",
    "Y": "yyyy MMMM",
}

_DATE_SPECIFIERS = set("yMdHhmsfFtzKg")


def shift_hours(value: datetime, hours: Optional[float]) -> datetime:
    if not hours:
        return value
    return value + timedelta(hours=hours)


def _offset(value: datetime) -> timedelta:
    offset = value.utcoffset()
    return offset if offset is not None else timedelta(0)


def _render_offset(value: datetime, width: int) -> str:
    total_minutes = int(_offset(value).total_seconds() // 60)
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(total_minutes), 60)
    if width == 1:
        return f"{sign}{hours}"
    if width == 2:
        return f"{sign}{hours:02d}"
    return f"{sign}{hours:02d}:{minutes:02d}"


def _render_specifier(value: datetime, char: str, count: int, output: List[str]) -> None:
    if char == "y":
        if count <= 2:
            year = value.year % 100
            output.append(f"{year:02d}" if count == 2 else str(year))
        else:
            output.append(str(value.year).rjust(count, "0"))
    elif char == "M":
        if count <= 2:
            output.append(f"{value.month:0{count}d}")
        elif count == 3:
            output.append(_MONTH_NAMES[value.month - 1][:3])
        else:
            output.append(_MONTH_NAMES[value.month - 1])
    elif char == "d":
        if count <= 2:
            output.append(f"{value.day:0{count}d}")
        elif count == 3:
            output.append(_DAY_NAMES[value.weekday()][:3])
        else:
            output.append(_DAY_NAMES[value.weekday()])
    elif char == "H":
        output.append(f"{value.hour:0{min(count, 2)}d}")
    elif char == "h":
        hour = value.hour % 12 or 12
        output.append(f"{hour:0{min(count, 2)}d}")
    elif char == "m":
        output.append(f"{value.minute:0{min(count, 2)}d}")
    elif char == "s":
        output.append(f"{value.second:0{min(count, 2)}d}")
    elif char in "fF":
        if count > 7:
            raise FormatError("Fractional seconds support at most seven digits")
        ticks = f"{value.microsecond * 10:07d}"[:count]
        if char == "F":
            ticks = ticks.rstrip("0")
            if not ticks and output and output[-1].endswith("."):
                output[-1] = output[-1][:-1]
        output.append(ticks)
    elif char == "t":
        marker = "AM" if value.hour < 12 else "PM"
        output.append(marker[0] if count == 1 else marker)
    elif char == "z":
        output.append(_render_offset(value, min(count, 3)))
    elif char == "K":
        if value.tzinfo is None:
            return
        if _offset(value) == timedelta(0) and value.tzinfo is timezone.utc:
            output.append("Z")
        else:
            output.append(_render_offset(value, 3))
    elif char == "g":
        output.append("A.D.")


def format_datetime(value: datetime, pattern: Optional[str] = None) -> str:
    """Render ``value`` with a .NET date/time pattern (invariant culture)."""

    if not pattern:
        pattern = DEFAULT_DATE_FORMAT
    if len(pattern) == 1:
        if pattern not in _STANDARD_DATE_PATTERNS:
            raise FormatError(f"Unknown standard date format '{pattern}'")
        pattern = _STANDARD_DATE_PATTERNS[pattern]

    output: List[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char in "'\"":
            end = pattern.find(char, index + 1)
            if end < 0:
                raise FormatError("Date pattern has an unterminated quoted literal")
            output.append(pattern[index + 1 : end])
            index = end + 1
            continue
        if char == "\\":
            if index + 1 >= len(pattern):
                raise FormatError("Date pattern ends with an escape character")
            output.append(pattern[index + 1])
            index += 2
            continue
        if char == "%":
            if index + 1 >= len(pattern) or pattern[index + 1] == "%":
                raise FormatError("Invalid '%' in date pattern")
            index += 1
            continue
        if char in _DATE_SPECIFIERS:
            end = index
            while end < len(pattern) and pattern[end] == char:
                end += 1
            _render_specifier(value, char, end - index, output)
            index = end
            continue
        output.append(char)
        index += 1
    return "".join(output)


__all__ = [
    "DEFAULT_DATE_FORMAT",
    "DEFAULT_MONEY_FORMAT",
    "FormatError",
    "apply_currency_symbol",
    "apply_numeric_pattern",
    "detect_scale",
    "format_datetime",
    "format_money",
    "format_number",
    "number_text",
    "shift_hours",
    "to_decimal",
]
