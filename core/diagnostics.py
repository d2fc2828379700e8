"""Observable fallback channel for the name builder engine.

The engine never raises while evaluating a configuration against a record.
Whenever it degrades (a format that cannot be applied, an unknown operator, a
fallback chain that loops back on itself) it records a :class:`Diagnostic` so
callers and tests can see which fallback was taken.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

FORMAT_FALLBACK = "format_fallback"
TYPE_MISMATCH = "type_mismatch"
CYCLIC_CHAIN = "cyclic_chain"
UNKNOWN_OPERATOR = "unknown_operator"
BLANK_CONDITION = "blank_condition"
FIELD_EXCLUDED = "field_excluded"
GLOBAL_TRUNCATION = "global_truncation"

DIAGNOSTIC_CODES = (
    FORMAT_FALLBACK,
    TYPE_MISMATCH,
    CYCLIC_CHAIN,
    UNKNOWN_OPERATOR,
    BLANK_CONDITION,
    FIELD_EXCLUDED,
    GLOBAL_TRUNCATION,
)


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"code": self.code, "message": self.message}
        if self.field:
            data["field"] = self.field
        return data


@dataclass
class Diagnostics:
    """Collects diagnostics for one evaluation and mirrors them to the log."""

    tracing: bool = False
    entries: List[Diagnostic] = field(default_factory=list)

    def record(self, code: str, message: str, *, field: Optional[str] = None) -> None:
        entry = Diagnostic(code=code, message=message, field=field)
        self.entries.append(entry)
        level = logging.INFO if self.tracing else logging.DEBUG
        logger.log(level, "[name_builder] %s: %s", code, message)

    def codes(self) -> List[str]:
        return [entry.code for entry in self.entries]

    def has(self, code: str) -> bool:
        return any(entry.code == code for entry in self.entries)

    def to_list(self) -> List[Dict[str, object]]:
        return [entry.to_dict() for entry in self.entries]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def report(diagnostics: Optional[Diagnostics], code: str, message: str, *, field: Optional[str] = None) -> None:
    """Record on ``diagnostics`` when supplied, otherwise only log at DEBUG."""

    if diagnostics is not None:
        diagnostics.record(code, message, field=field)
    else:
        logger.debug("[name_builder] %s: %s", code, message)


__all__ = [
    "BLANK_CONDITION",
    "CYCLIC_CHAIN",
    "DIAGNOSTIC_CODES",
    "Diagnostic",
    "Diagnostics",
    "FIELD_EXCLUDED",
    "FORMAT_FALLBACK",
    "GLOBAL_TRUNCATION",
    "TYPE_MISMATCH",
    "UNKNOWN_OPERATOR",
    "report",
]
