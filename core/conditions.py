"""Conditional inclusion rules for name builder fields."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from dateutil import parser as date_parser

from core.configuration import Condition
from core.diagnostics import BLANK_CONDITION, UNKNOWN_OPERATOR, Diagnostics, report
from core.formatting import format_datetime, number_text
from core.records import (
    BooleanValue,
    DateTimeValue,
    MoneyValue,
    NumberValue,
    OptionValue,
    RecordView,
    ReferenceValue,
    TextValue,
)

logger = logging.getLogger(__name__)

# Short operator names accepted by the runtime plugin.
_ALIASES = {
    "eq": "equals",
    "ne": "notequals",
    "gt": "greaterthan",
    "lt": "lessthan",
    "gte": "greaterthanorequal",
    "ge": "greaterthanorequal",
    "lte": "lessthanorequal",
    "le": "lessthanorequal",
}


@dataclass
class ValueContext:
    """Textual and typed representations of one attribute value."""

    has_value: bool = False
    numeric: Optional[Decimal] = None
    instant: Optional[datetime] = None
    candidates: List[str] = field(default_factory=list)


def value_context(record: Optional[RecordView], name: Optional[str]) -> ValueContext:
    context = ValueContext()
    if record is None or not name or not name.strip():
        return context

    value = record.get(name)
    if value is None:
        return context

    context.has_value = True
    label = record.label(name)

    if isinstance(value, TextValue):
        context.candidates.append(value.text)
    elif isinstance(value, ReferenceValue):
        if value.name and value.name.strip():
            context.candidates.append(value.name)
        context.candidates.append(value.id)
    elif isinstance(value, OptionValue):
        context.numeric = Decimal(value.code)
        option_label = label if label and label.strip() else value.label
        if option_label and option_label.strip():
            context.candidates.append(option_label)
        context.candidates.append(str(value.code))
    elif isinstance(value, MoneyValue):
        context.numeric = value.amount
        if label and label.strip():
            context.candidates.append(label)
        context.candidates.append(number_text(value.amount))
    elif isinstance(value, DateTimeValue):
        context.instant = value.instant
        context.candidates.append(format_datetime(value.instant, "o"))
    elif isinstance(value, BooleanValue):
        context.numeric = Decimal(1 if value.flag else 0)
        context.candidates.append("true" if value.flag else "false")
    elif isinstance(value, NumberValue):
        try:
            context.numeric = value.as_decimal()
        except (InvalidOperation, ValueError):
            context.numeric = None
        context.candidates.append(number_text(value.value))

    if context.numeric is not None and not context.numeric.is_finite():
        context.numeric = None
    if not context.candidates:
        context.candidates.append(str(value))
    return context


def _parse_decimal(text: str) -> Optional[Decimal]:
    if not text or not text.strip():
        return None
    try:
        number = Decimal(text.strip().replace(",", ""))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


_PARTIAL_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _parse_datetime(text: str) -> Optional[datetime]:
    """Parse a comparison date; fragments without a year and month are rejected."""

    if not text or not text.strip():
        return None
    try:
        first, second = (date_parser.parse(text.strip(), default=default) for default in _PARTIAL_DATE_DEFAULTS)
        if (first.year, first.month) != (second.year, second.month):
            return None
        return _as_utc(first)
    except (ValueError, OverflowError):
        return None


def _matches_any(context: ValueContext, predicate: Callable[[str], bool]) -> bool:
    candidates = context.candidates or [""]
    return any(predicate(candidate or "") for candidate in candidates)


def _in_list(context: ValueContext, comparison: str, negate: bool) -> bool:
    entries = [part.strip().lower() for part in comparison.replace(";", ",").split(",")]
    entries = [entry for entry in entries if entry]
    if not entries:
        return False
    match = _matches_any(context, lambda candidate: candidate.lower() in entries)
    return not match if negate else match


def _ordered(sign: int, operator: str) -> bool:
    if operator == "greaterthan":
        return sign > 0
    if operator == "greaterthanorequal":
        return sign >= 0
    if operator == "lessthan":
        return sign < 0
    return sign <= 0


def _compare(left, right) -> int:
    return (left > right) - (left < right)


def _compare_ordered(context: ValueContext, comparison: str, operator: str) -> bool:
    if context.numeric is not None:
        target = _parse_decimal(comparison)
        if target is not None:
            return _ordered(_compare(context.numeric, target), operator)

    if context.instant is not None:
        target_instant = _parse_datetime(comparison)
        if target_instant is not None:
            try:
                return _ordered(_compare(_as_utc(context.instant), target_instant), operator)
            except OverflowError:
                pass

    candidate = context.candidates[0] if context.candidates else ""
    return _ordered(_compare(candidate.upper(), comparison.upper()), operator)


def _evaluate_simple(condition: Condition, record: Optional[RecordView], diagnostics: Optional[Diagnostics]) -> bool:
    if not condition.field or not condition.field.strip():
        report(diagnostics, BLANK_CONDITION, "Condition without a field name always passes.")
        return True

    context = value_context(record, condition.field)
    operator = (condition.operator or "equals").strip().lower()
    operator = _ALIASES.get(operator, operator)
    comparison = condition.value or ""
    target = comparison.lower()

    if operator == "equals":
        return _matches_any(context, lambda candidate: candidate.lower() == target)
    if operator == "notequals":
        return not _matches_any(context, lambda candidate: candidate.lower() == target)
    if operator == "contains":
        return _matches_any(context, lambda candidate: target in candidate.lower())
    if operator == "notcontains":
        return not _matches_any(context, lambda candidate: target in candidate.lower())
    if operator == "in":
        return _in_list(context, comparison, negate=False)
    if operator == "notin":
        return _in_list(context, comparison, negate=True)
    if operator == "isempty":
        return not context.has_value or all(not candidate.strip() for candidate in context.candidates)
    if operator == "isnotempty":
        return context.has_value and any(candidate.strip() for candidate in context.candidates)
    if operator in {"greaterthan", "lessthan", "greaterthanorequal", "lessthanorequal"}:
        return _compare_ordered(context, comparison, operator)

    report(
        diagnostics,
        UNKNOWN_OPERATOR,
        f"Unknown operator '{condition.operator}' on '{condition.field}'; the field is included.",
        field=condition.field,
    )
    return True


def evaluate(
    condition: Optional[Condition],
    record: Optional[RecordView],
    diagnostics: Optional[Diagnostics] = None,
) -> bool:
    """Return whether ``condition`` holds for ``record``.

    ``anyOf`` is checked before ``allOf``; simple fields on a compound node
    are ignored. The evaluator never raises: blank fields and unknown
    operators pass.
    """

    if condition is None:
        return True
    if condition.any_of:
        return any(evaluate(child, record, diagnostics) for child in condition.any_of)
    if condition.all_of:
        return all(evaluate(child, record, diagnostics) for child in condition.all_of)
    return _evaluate_simple(condition, record, diagnostics)


__all__ = ["ValueContext", "evaluate", "value_context"]
